import numpy as np
import pytest

from rrtmgpy import fluxes
from rrtmgpy.optical_props import OpticalProps1scl


BAND_LIMS_GPT = np.array([[0, 2], [2, 5]])


@pytest.fixture
def optical_props():
    return OpticalProps1scl(BAND_LIMS_GPT).alloc(2, 3)


@pytest.fixture
def gpt_fluxes():
    """Upward and downward g-point fluxes ``(2, 4, 5)``."""
    gpt_flux_up = np.tile(np.arange(1., 6.), (2, 4, 1))
    gpt_flux_dn = np.full((2, 4, 5), 0.5)

    return gpt_flux_up, gpt_flux_dn


class TestFluxes2Heating:
    def test_fluxes2heating(self):
        """Test the heating of a layer that gains 10 W/m**2."""
        net_fluxes = np.array([-10., 0.])
        pressure = np.array([1000e2, 900e2])

        heating = fluxes.fluxes2heating(net_fluxes, pressure, cp=1000.)

        expected = 9.80665 / 1000. * (10. / -10000.) * 86400
        assert np.allclose(heating, expected)

    def test_fluxes2heating_gradient(self):
        net_fluxes = np.linspace(0., 10., 5)
        pressure = np.linspace(1000e2, 800e2, 5)

        heating = fluxes.fluxes2heating(net_fluxes, pressure,
                                        method='gradient')

        assert heating.shape == (5,)
        assert np.allclose(heating, heating[0])

    def test_fluxes2heating_invalid_method(self):
        with pytest.raises(ValueError):
            fluxes.fluxes2heating(np.zeros(2), np.ones(2), method='spline')


class TestFluxes:
    def test_init(self):
        broadband = fluxes.Fluxes(3, 11)

        assert broadband.ncol == 3
        assert broadband.nlev == 11
        assert broadband.dtype == np.float64
        assert not broadband.has_direct
        assert not broadband.has_jacobian
        assert 'flux_net' in broadband

    def test_optional_variables(self):
        broadband = fluxes.Fluxes(3, 11, direct=True, jacobian=True)

        assert broadband['flux_dn_dir'].shape == (3, 11)
        assert broadband['flux_up_jac'].shape == (3, 11)

    def test_reduce(self, optical_props, gpt_fluxes):
        broadband = fluxes.Fluxes(2, 4)

        broadband.reduce(*gpt_fluxes, optical_props, top_at_1=False)

        assert np.allclose(broadband['flux_up'], 15.)
        assert np.allclose(broadband['flux_dn'], 2.5)
        assert np.allclose(broadband['flux_net'], 12.5)
        assert not broadband.top_at_1

    def test_reduce_direct(self, optical_props, gpt_fluxes):
        broadband = fluxes.Fluxes(2, 4, direct=True)

        broadband.reduce(*gpt_fluxes, optical_props, top_at_1=True,
                         gpt_flux_dn_dir=np.full((2, 4, 5), 0.2))

        assert np.allclose(broadband['flux_dn_dir'], 1.)

    def test_reduce_wrong_shape(self, optical_props, gpt_fluxes):
        broadband = fluxes.Fluxes(3, 4)

        with pytest.raises(ValueError):
            broadband.reduce(*gpt_fluxes, optical_props, top_at_1=True)

    def test_check(self):
        broadband = fluxes.Fluxes(2, 4)
        broadband.check(2, 4, np.float64)

        with pytest.raises(ValueError):
            broadband.check(2, 5, np.float64)

        with pytest.raises(TypeError):
            broadband.check(2, 4, np.float32)

    def test_heating_rate(self):
        """A constant net flux does not heat the atmosphere."""
        broadband = fluxes.Fluxes(2, 4)
        broadband.set('flux_net', 100.)
        plev = np.tile(np.linspace(1000e2, 100e2, 4), (2, 1))

        assert np.allclose(broadband.heating_rate(plev), 0.)

    def test_subset(self):
        broadband = fluxes.Fluxes(4, 3)

        subset = broadband.subset(2, 4)
        subset.set('flux_up', 1.)

        assert subset.ncol == 2
        assert np.array_equal(broadband['flux_up'][:, 0], [0., 0., 1., 1.])


class TestFluxesByBand:
    def test_reduce(self, optical_props, gpt_fluxes):
        by_band = fluxes.FluxesByBand(2, 4, BAND_LIMS_GPT, direct=True)

        by_band.reduce(*gpt_fluxes, optical_props, top_at_1=True,
                       gpt_flux_dn_dir=np.full((2, 4, 5), 0.2))

        assert np.allclose(by_band['bnd_flux_up'], [3., 12.])
        assert np.allclose(by_band['bnd_flux_dn'], [1., 1.5])
        assert np.allclose(by_band['bnd_flux_net'], [2., 10.5])
        assert np.allclose(by_band['bnd_flux_dn_dir'], [0.4, 0.6])
        assert np.allclose(by_band['bnd_flux_up'].sum(axis=-1),
                           by_band['flux_up'])

    def test_reduce_band_mismatch(self, gpt_fluxes):
        by_band = fluxes.FluxesByBand(2, 4, np.array([[0, 5]]))
        optical_props = OpticalProps1scl(BAND_LIMS_GPT).alloc(2, 3)

        with pytest.raises(ValueError):
            by_band.reduce(*gpt_fluxes, optical_props, top_at_1=True)

    def test_to_dataset(self):
        ds = fluxes.FluxesByBand(2, 4, BAND_LIMS_GPT).to_dataset()

        assert ds['bnd_flux_up'].dims == ('col', 'lev', 'band')
        assert ds.sizes['band'] == 2
