import numpy as np
import pytest
import xarray as xr

from rrtmgpy import utils


class TestPressureGrids:
    def test_quadratic_pgrid(self):
        pgrid = utils.get_quadratic_pgrid(1000e2, 10, num=20)

        assert np.isclose(pgrid[0], 1000e2)
        assert np.isclose(pgrid[-1], 10)
        assert utils.is_decreasing(pgrid)

    def test_pressure_grids(self):
        play, plev = utils.get_pressure_grids(1000e2, 10, num=5)

        assert play.size == 5
        assert plev.size == 6
        assert np.all(plev[1:] < play) and np.all(play < plev[:-1])

    def test_plev_from_phlev(self):
        phlev = np.array([[1000e2, 100e2, 10e2]])

        assert np.allclose(utils.plev_from_phlev(phlev), [[316.22776e2,
                                                           31.622776e2]])


@pytest.mark.parametrize('play, expected', [
    ([[1000e2, 500e2, 100e2]], False),
    ([[100e2, 500e2, 1000e2]], True),
    ([100e2, 500e2], True),
])
def test_is_top_at_1(play, expected):
    assert utils.is_top_at_1(play) is expected


class TestColumnBlocks:
    def test_residual_block(self):
        assert utils.get_column_blocks(10, 4) == [(0, 4), (4, 8), (8, 10)]

    def test_single_block(self):
        assert utils.get_column_blocks(3, 1024) == [(0, 3)]

    def test_exact_blocks(self):
        assert utils.get_column_blocks(6, 3) == [(0, 3), (3, 6)]

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            utils.get_column_blocks(10, 0)


def test_check_array_shape():
    utils.check_array_shape(np.zeros((2, 3)), (2, 3), 'play')

    with pytest.raises(ValueError):
        utils.check_array_shape(np.zeros((3, 2)), (2, 3), 'play')


def test_check_array_dtype():
    utils.check_array_dtype(np.zeros(2), np.float64, 'play')

    with pytest.raises(TypeError):
        utils.check_array_dtype(np.zeros(2, dtype=np.float32), np.float64,
                                'play')


@pytest.mark.parametrize('value', [1., np.ones(4), np.ones((3, 4))])
def test_broadcast_columns(value):
    field = utils.broadcast_columns(value, (3, 4), dtype=np.float32)

    assert field.shape == (3, 4)
    assert field.dtype == np.float32
    assert np.all(field == 1.)


def test_append_description():
    ds = xr.Dataset({'flux_up': ('lev', np.zeros(3))})

    utils.append_description(ds)

    assert ds['flux_up'].attrs['units'] == 'W / m**2'
    assert 'dims' not in ds['flux_up'].attrs
