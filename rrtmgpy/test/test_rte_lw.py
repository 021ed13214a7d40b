import numpy as np
import pytest

from rrtmgpy import constants
from rrtmgpy.optical_props import (OpticalProps1scl, OpticalProps2str,
                                   SourceFuncLW)
from rrtmgpy.rte import (lw_solver_noscat_gaussquad, lw_source_noscat, rte_lw)


BAND_LIMS_GPT = np.array([[0, 2], [2, 3]])
NCOL, NLAY, NGPT = 3, 5, 3


@pytest.fixture
def optical_props():
    return OpticalProps1scl(BAND_LIMS_GPT).alloc(NCOL, NLAY)


@pytest.fixture
def sources():
    """Isothermal sources with a warmer surface."""
    sources = SourceFuncLW(BAND_LIMS_GPT).alloc(NCOL, NLAY)
    for name in ('lay_source', 'lev_source_inc', 'lev_source_dec'):
        sources.set(name, 50.)
    sources.set('sfc_source', 100.)
    sources.set('sfc_source_jac', 2.)

    return sources


def flux_arrays(dtype=np.float64):
    shape = (NCOL, NLAY + 1, NGPT)
    return np.zeros(shape, dtype), np.zeros(shape, dtype)


class TestSource:
    def test_thin_layer(self):
        """Optically thin layers neither absorb nor emit."""
        tau = np.array([0., 1e-12])
        source_dn, source_up = lw_source_noscat(
            np.full(2, 10.), np.full(2, 10.), np.full(2, 10.), tau,
            np.exp(-tau))

        assert np.allclose(source_dn, 0.)
        assert np.allclose(source_up, 0.)

    def test_isothermal_layer(self):
        """An isothermal layer emits (1 - trans) times its source."""
        tau = np.array([0.01, 0.5, 5.])
        trans = np.exp(-tau)
        source = np.full(3, 10.)

        source_dn, source_up = lw_source_noscat(source, source, source, tau,
                                                trans)

        assert np.allclose(source_dn, (1. - trans) * 10.)
        assert np.allclose(source_up, source_dn)


class TestRteLw:
    def test_transparent(self, optical_props, sources):
        """Without absorption only the surface emission is seen."""
        flux_up, flux_dn = flux_arrays()

        rte_lw(optical_props, False, sources, 1., flux_up, flux_dn)

        assert np.allclose(flux_up, np.pi * 100.)
        assert np.allclose(flux_dn, 0.)

    @pytest.mark.parametrize('n_gauss_angles', [1, 2, 3, 4])
    def test_transparent_quadrature(self, optical_props, sources,
                                    n_gauss_angles):
        """All quadrature weights add up to the same hemispheric flux."""
        flux_up, flux_dn = flux_arrays()

        rte_lw(optical_props, True, sources, 1., flux_up, flux_dn,
               n_gauss_angles=n_gauss_angles)

        assert np.allclose(flux_up, np.pi * 100.)

    def test_incoming_flux(self, optical_props, sources):
        """Incoming flux is transmitted and partly reflected."""
        flux_up, flux_dn = flux_arrays()
        sources.set('sfc_source', 0.)
        inc_flux = np.full((NCOL, NGPT), 10.)

        rte_lw(optical_props, True, sources, 0.9, flux_up, flux_dn,
               inc_flux=inc_flux)

        assert np.allclose(flux_dn, 10.)
        assert np.allclose(flux_up, 1.)

    def test_opaque(self, optical_props, sources):
        """Fluxes leaving opaque layers equal the interface emission."""
        optical_props.set('tau', 1e7)
        sources.set('lev_source_dec', 30.)
        sources.set('lev_source_inc', 70.)
        flux_up, flux_dn = flux_arrays()

        rte_lw(optical_props, True, sources, 1., flux_up, flux_dn)

        # Upward radiance leaves each layer through its top interface.
        assert np.allclose(flux_up[:, :-1], np.pi * 30.)
        assert np.allclose(flux_dn[:, 1:], np.pi * 70.)
        assert np.allclose(flux_up[:, -1], np.pi * 100.)

    def test_vertical_ordering(self, optical_props, sources):
        """Reversing all layers reverses the fluxes."""
        rng = np.random.RandomState(0)
        optical_props['tau'][...] = rng.uniform(0., 2., (NCOL, NLAY, NGPT))
        sources['lay_source'][...] = rng.uniform(10., 50., (NCOL, NLAY, NGPT))
        sources['lev_source_inc'][...] = rng.uniform(10., 50.,
                                                     (NCOL, NLAY, NGPT))
        sources['lev_source_dec'][...] = rng.uniform(10., 50.,
                                                     (NCOL, NLAY, NGPT))

        flux_up, flux_dn = flux_arrays()
        rte_lw(optical_props, True, sources, 0.95, flux_up, flux_dn)

        flipped_props = OpticalProps1scl(BAND_LIMS_GPT).alloc(NCOL, NLAY)
        flipped_props['tau'][...] = optical_props['tau'][:, ::-1]
        flipped_sources = SourceFuncLW(BAND_LIMS_GPT).alloc(NCOL, NLAY)
        flipped_sources['lay_source'][...] = sources['lay_source'][:, ::-1]
        flipped_sources['lev_source_inc'][...] = (
            sources['lev_source_dec'][:, ::-1])
        flipped_sources['lev_source_dec'][...] = (
            sources['lev_source_inc'][:, ::-1])
        flipped_sources['sfc_source'][...] = sources['sfc_source']
        flipped_sources['sfc_source_jac'][...] = sources['sfc_source_jac']

        flipped_up, flipped_dn = flux_arrays()
        rte_lw(flipped_props, False, flipped_sources, 0.95, flipped_up,
               flipped_dn)

        assert np.allclose(flipped_up, flux_up[:, ::-1])
        assert np.allclose(flipped_dn, flux_dn[:, ::-1])

    def test_surface_emissivity_by_band(self, optical_props, sources):
        flux_up, flux_dn = flux_arrays()

        rte_lw(optical_props, True, sources, [1., 0.5], flux_up, flux_dn)

        assert np.allclose(flux_up[..., :2], np.pi * 100.)
        assert np.allclose(flux_up[..., 2], np.pi * 50.)

    def test_jacobian(self, optical_props, sources):
        optical_props.set('tau', 0.1)
        flux_up, flux_dn = flux_arrays()
        flux_up_jac = np.zeros_like(flux_up)

        rte_lw(optical_props, True, sources, 1., flux_up, flux_dn,
               gpt_flux_up_jac=flux_up_jac)

        trans = np.exp(-0.1 * constants.gauss_secants[0][0])
        expected = np.pi * 2. * trans**np.arange(NLAY, -1, -1)
        assert np.allclose(flux_up_jac, expected[np.newaxis, :, np.newaxis])

    def test_scattering_is_neglected(self, sources):
        """Only the absorption optical depth of two-stream properties
        is used."""
        optical_props = OpticalProps2str(BAND_LIMS_GPT).alloc(NCOL, NLAY)
        optical_props.set('tau', 10.)
        optical_props.set('ssa', 1.)
        flux_up, flux_dn = flux_arrays()

        rte_lw(optical_props, True, sources, 1., flux_up, flux_dn)

        assert np.allclose(flux_up, np.pi * 100.)

    @pytest.mark.parametrize('n_gauss_angles', [0, 5])
    def test_invalid_quadrature(self, optical_props, sources, n_gauss_angles):
        flux_up, flux_dn = flux_arrays()

        with pytest.raises(ValueError):
            lw_solver_noscat_gaussquad(
                True, n_gauss_angles, optical_props['tau'],
                sources['lay_source'], sources['lev_source_inc'],
                sources['lev_source_dec'], np.ones((NCOL, NGPT)),
                sources['sfc_source'], flux_up, flux_dn,
            )

    def test_wrong_shape(self, optical_props, sources):
        flux_up = np.zeros((NCOL, NLAY, NGPT))
        flux_dn = np.zeros((NCOL, NLAY + 1, NGPT))

        with pytest.raises(ValueError):
            rte_lw(optical_props, True, sources, 1., flux_up, flux_dn)

    def test_wrong_dtype(self, optical_props, sources):
        flux_up, flux_dn = flux_arrays(dtype=np.float32)

        with pytest.raises(TypeError):
            rte_lw(optical_props, True, sources, 1., flux_up, flux_dn)
