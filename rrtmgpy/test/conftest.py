import numpy as np
import pytest
import scipy.constants as spc

from rrtmgpy.atmosphere import AtmosphericState
from rrtmgpy.gas_concentrations import GasConcentrations
from rrtmgpy.gas_optics import (GasOpticsRRTMGP, MinorContribution,
                                ReferenceTables)
from rrtmgpy.utils import get_pressure_grids


# Reference grids shared by all synthetic tables.
TEMP_REF = np.array([160., 220., 280., 340.])
PRESS_REF = np.array([1e5, 1e4, 1e3, 1e2, 1e1, 1e0])
PRESS_REF_TROP = 5000.
NETA = 3
BAND_LIMS_GPT = np.array([[0, 2], [2, 4]])
BAND_LIMS_WAVENUM = np.array([[10., 500.], [500., 3000.]])
VMR_H2O = 1e-3
VMR_CO2 = 4e-4


def make_table_arguments(seed=0):
    """Return the keyword arguments of a small k-distribution.

    Two gases (h2o, co2), two bands with two g-points each. The second
    band has no key species in the upper atmosphere.
    """
    rng = np.random.RandomState(seed)
    ntemp, npres, ngpt = TEMP_REF.size, PRESS_REF.size, 4

    vmr_ref = np.empty((ntemp, 3, 2))
    vmr_ref[:, 0] = 1.
    vmr_ref[:, 1] = VMR_H2O
    vmr_ref[:, 2] = VMR_CO2

    return dict(
        gas_names=['h2o', 'co2'],
        key_species=np.array([[[1, 2], [1, 2]], [[1, 2], [0, 0]]]),
        band_lims_gpt=BAND_LIMS_GPT,
        band_lims_wavenum=BAND_LIMS_WAVENUM,
        press_ref=PRESS_REF,
        press_ref_trop=PRESS_REF_TROP,
        temp_ref=TEMP_REF,
        vmr_ref=vmr_ref,
        kmajor=rng.uniform(1., 2., (ntemp, npres + 1, NETA, ngpt)) * 1e-24,
        kminor_lower=rng.uniform(1., 2., (ntemp, NETA, 2)) * 1e-24,
        minor_lower=[
            MinorContribution(
                gas='co2', gpt_start=0, gpt_stop=2, kminor_start=0,
                scales_with_density=False, scaling_gas=None,
                scale_by_complement=False,
            ),
        ],
    )


def make_planck_arguments(ngpt=4):
    """Planck table of a grey body split equally between two bands."""
    temperature = np.linspace(TEMP_REF[0], TEMP_REF[-1], 181)
    planck = spc.Stefan_Boltzmann * temperature**4 / np.pi
    kmajor_shape = (TEMP_REF.size, PRESS_REF.size + 1, NETA, ngpt)

    return dict(
        totplnk=np.stack([0.4 * planck, 0.6 * planck], axis=1),
        planck_frac=np.full(kmajor_shape, 0.5),
    )


def make_solar_arguments(seed=1):
    rng = np.random.RandomState(seed)
    kmajor_shape = (TEMP_REF.size, NETA, 4)

    return dict(
        rayl_lower=rng.uniform(1., 2., kmajor_shape) * 1e-27,
        rayl_upper=rng.uniform(1., 2., kmajor_shape) * 1e-27,
        solar_source_quiet=np.array([100., 200., 300., 400.]),
        solar_source_facular=np.array([1., 1., 1., 1.]),
        solar_source_sunspot=np.array([-1., -1., -1., -1.]),
    )


@pytest.fixture
def lw_tables():
    return ReferenceTables(**make_table_arguments(), **make_planck_arguments())


@pytest.fixture
def sw_tables():
    return ReferenceTables(**make_table_arguments(), **make_solar_arguments())


@pytest.fixture
def lw_gas_optics(lw_tables):
    return GasOpticsRRTMGP(['h2o', 'co2'], lw_tables)


@pytest.fixture
def sw_gas_optics(sw_tables):
    return GasOpticsRRTMGP(['h2o', 'co2'], sw_tables)


@pytest.fixture
def gas_concs():
    return GasConcentrations({'h2o': VMR_H2O, 'co2': VMR_CO2})


def make_state(ncol=7, nlay=10, dtype=np.float64, gas_concs=None):
    """Atmospheric state ordered from the surface upward."""
    play, plev = get_pressure_grids(1000e2, 10, nlay)
    tlay = np.linspace(290., 200., nlay)

    if gas_concs is None:
        h2o = np.tile(np.linspace(1e-2, 1e-5, nlay), (ncol, 1))
        h2o *= np.linspace(0.5, 1., ncol)[:, np.newaxis]
        gas_concs = GasConcentrations({'h2o': h2o, 'co2': VMR_CO2})

    return AtmosphericState.from_profile(
        play, plev, tlay, tsfc=295., gas_concs=gas_concs, ncol=ncol,
        dtype=dtype,
    )


@pytest.fixture
def state():
    return make_state()


@pytest.fixture
def state_factory():
    return make_state
