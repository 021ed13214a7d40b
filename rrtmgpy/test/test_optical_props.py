import numpy as np
import pytest

from rrtmgpy import optical_props


BAND_LIMS_GPT = np.array([[0, 3], [3, 5]])


@pytest.fixture
def props_2str():
    props = optical_props.OpticalProps2str(BAND_LIMS_GPT).alloc(2, 3)
    props.set('tau', 1.)
    props.set('ssa', 0.5)
    props.set('g', 0.5)

    return props


class TestOpticalProps:
    def test_spectral_discretisation(self):
        props = optical_props.OpticalProps(BAND_LIMS_GPT)

        assert props.nband == 2
        assert props.ngpt == 5
        assert np.array_equal(props.band_of_gpt, [0, 0, 0, 1, 1])
        assert not props.is_by_band

    def test_by_band(self):
        props = optical_props.OpticalProps.by_band(4)

        assert props.is_by_band
        assert np.array_equal(props.band_of_gpt, np.arange(4))

    def test_alloc(self, props_2str):
        assert props_2str.ncol == 2
        assert props_2str.nlay == 3
        assert props_2str['g'].shape == (2, 3, 5)
        assert props_2str.dtype == np.float64

    @pytest.mark.parametrize('values', [0.3, [0.1, 0.2], [1, 2, 3, 4, 5],
                                        np.full((4, 2), 0.7)])
    def test_expand_surface_property(self, values):
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(4, 3)

        expanded = props.expand_surface_property(values, ncol=4)

        assert expanded.shape == (4, 5)

    def test_expand_surface_property_by_band(self):
        """Per-band values are assigned to all g-points of the band."""
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(1, 3)

        expanded = props.expand_surface_property([0.1, 0.2], ncol=1)

        assert np.allclose(expanded, [[0.1, 0.1, 0.1, 0.2, 0.2]])

    def test_expand_surface_property_invalid(self):
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(4, 3)

        with pytest.raises(ValueError):
            props.expand_surface_property([0.1, 0.2, 0.3], ncol=4)


class TestOpticalProps1scl:
    def test_validate(self):
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(2, 3)
        props.validate()

        props['tau'][0, 0, 0] = -1.
        with pytest.raises(ValueError):
            props.validate()

    def test_increment_2str(self, props_2str):
        """Only the absorbed part of two-stream properties is added."""
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(2, 3)

        props.increment(props_2str)

        assert np.allclose(props['tau'], 0.5)

    def test_increment_by_band(self):
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(1, 1)
        by_band = optical_props.OpticalProps1scl.by_band(2).alloc(1, 1)
        by_band['tau'][...] = [1., 2.]

        props.increment(by_band)

        assert np.allclose(props['tau'][0, 0], [1., 1., 1., 2., 2.])

    def test_increment_incompatible(self):
        props = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(1, 1)
        other = optical_props.OpticalProps1scl.by_band(3).alloc(1, 1)

        with pytest.raises(ValueError):
            props.increment(other)


class TestOpticalProps2str:
    def test_validate(self, props_2str):
        props_2str.validate()

        props_2str['ssa'][0, 0, 0] = 1.5
        with pytest.raises(ValueError):
            props_2str.validate()

    def test_validate_asymmetry(self, props_2str):
        props_2str['g'][1, 2, 4] = -1.2
        with pytest.raises(ValueError):
            props_2str.validate()

    def test_delta_scale(self, props_2str):
        """Test delta scaling with the default forward fraction g**2."""
        props_2str.delta_scale()

        # f = 0.25, ssa * f = 0.125
        assert np.allclose(props_2str['tau'], 0.875)
        assert np.allclose(props_2str['ssa'], 0.375 / 0.875)
        assert np.allclose(props_2str['g'], 0.25 / 0.75)

    def test_delta_scale_invalid_fraction(self, props_2str):
        with pytest.raises(ValueError):
            props_2str.delta_scale(forward_fraction=np.full((2, 3, 5), 1.5))

    def test_increment(self, props_2str):
        """Scattering properties are weighted by the optical depth."""
        other = optical_props.OpticalProps2str(BAND_LIMS_GPT).alloc(2, 3)
        other.set('tau', 3.)
        other.set('ssa', 1.)
        other.set('g', 0.)

        props_2str.increment(other)

        assert np.allclose(props_2str['tau'], 4.)
        assert np.allclose(props_2str['ssa'], 3.5 / 4.)
        assert np.allclose(props_2str['g'], 0.25 / 3.5)

    def test_increment_1scl(self, props_2str):
        """Absorption reduces the single scattering albedo."""
        absorber = optical_props.OpticalProps1scl(BAND_LIMS_GPT).alloc(2, 3)
        absorber.set('tau', 1.)

        props_2str.increment(absorber)

        assert np.allclose(props_2str['tau'], 2.)
        assert np.allclose(props_2str['ssa'], 0.25)
        assert np.allclose(props_2str['g'], 0.5)


class TestSourceFuncLW:
    def test_alloc(self):
        sources = optical_props.SourceFuncLW(BAND_LIMS_GPT).alloc(
            2, 3, dtype=np.float32)

        assert sources.dtype == np.float32
        assert sources['sfc_source'].shape == (2, 5)
        assert sources['lev_source_inc'].shape == (2, 3, 5)

    def test_subset(self):
        sources = optical_props.SourceFuncLW(BAND_LIMS_GPT).alloc(4, 3)

        subset = sources.subset(1, 3)
        subset.set('sfc_source', 1.)

        assert subset.ncol == 2
        assert np.array_equal(sources['sfc_source'][:, 0], [0., 1., 1., 0.])
