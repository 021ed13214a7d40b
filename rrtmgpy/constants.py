# -*- coding: utf-8 -*-
"""Physical constants and descriptions of the variables stored by rrtmgpy.
"""
import numpy as np
import scipy.constants as spc
import typhon.constants as tyc


# Physical constants
c_pd = isobaric_mass_heat_capacity_dry_air = 1004.64  # J kg^-1 K^-1
g = earth_standard_gravity = spc.g  # m s^-2
avogadro = tyc.avogadro  # molecules per mole
molar_mass_dry_air = m_dry = 0.028964  # kg mol^-1
molar_mass_water_vapor = m_h2o = 0.018016  # kg mol^-1
seconds_in_a_day = 24 * 60 * 60  # s
pascal_to_hectopascal = 0.01

# Offsets of the NRLSSI2 solar variability indices (facular and sunspot).
solar_mg_index_offset = 0.1495954
solar_sb_index_offset = 0.00066

# Gaussian quadrature secants and weights for the no-scattering longwave
# solver (1 to 4 angles). The weights sum up to 0.5 for each set.
gauss_secants = (
    np.array([1.66]),
    np.array([1.18350343, 2.81649655]),
    np.array([1.09719858, 1.69338507, 4.70941630]),
    np.array([1.06056257, 1.38282560, 2.40148179, 7.15513024]),
)
gauss_weights = (
    np.array([0.5]),
    np.array([0.3180413817, 0.1819586183]),
    np.array([0.2009319137, 0.2292411064, 0.0698269799]),
    np.array([0.1355069134, 0.2034645680, 0.1298475476, 0.0311809710]),
)

# Variable descriptions
variable_description = {
    # Coordinates
    'col': {
        'units': '1',
        'standard_name': 'column_index',
    },
    'lay': {
        'units': '1',
        'standard_name': 'layer_index',
    },
    'lev': {
        'units': '1',
        'standard_name': 'level_index',
    },
    'gpt': {
        'units': '1',
        'standard_name': 'spectral_g_point_index',
    },
    'band': {
        'units': '1',
        'standard_name': 'spectral_band_index',
    },
    # Atmospheric state
    'play': {
        'units': 'Pa',
        'standard_name': 'air_pressure',
        'dims': ('col', 'lay'),
    },
    'plev': {
        'units': 'Pa',
        'standard_name': 'air_pressure_at_interface',
        'dims': ('col', 'lev'),
    },
    'tlay': {
        'units': 'K',
        'standard_name': 'air_temperature',
        'dims': ('col', 'lay'),
    },
    'tlev': {
        'units': 'K',
        'standard_name': 'air_temperature_at_interface',
        'dims': ('col', 'lev'),
    },
    'tsfc': {
        'units': 'K',
        'standard_name': 'surface_temperature',
        'dims': ('col',),
    },
    'col_dry': {
        'units': 'molecules / cm**2',
        'standard_name': 'atmosphere_number_content_of_dry_air',
        'description': 'Number of dry air molecules per unit area in a layer',
        'dims': ('col', 'lay'),
    },
    # Optical properties
    'tau': {
        'units': '1',
        'standard_name': 'optical_thickness',
        'dims': ('col', 'lay', 'gpt'),
    },
    'ssa': {
        'units': '1',
        'standard_name': 'single_scattering_albedo',
        'dims': ('col', 'lay', 'gpt'),
    },
    'g': {
        'units': '1',
        'standard_name': 'asymmetry_parameter',
        'dims': ('col', 'lay', 'gpt'),
    },
    # Longwave sources
    'lay_source': {
        'units': 'W / m**2 / sr',
        'standard_name': 'planck_source_in_layer',
        'dims': ('col', 'lay', 'gpt'),
    },
    'lev_source_inc': {
        'units': 'W / m**2 / sr',
        'standard_name': 'planck_source_at_interface_increasing_index',
        'dims': ('col', 'lay', 'gpt'),
    },
    'lev_source_dec': {
        'units': 'W / m**2 / sr',
        'standard_name': 'planck_source_at_interface_decreasing_index',
        'dims': ('col', 'lay', 'gpt'),
    },
    'sfc_source': {
        'units': 'W / m**2 / sr',
        'standard_name': 'planck_source_at_surface',
        'dims': ('col', 'gpt'),
    },
    'sfc_source_jac': {
        'units': 'W / m**2 / sr / K',
        'standard_name': 'derivative_of_surface_planck_source_wrt_temperature',
        'dims': ('col', 'gpt'),
    },
    # Broadband fluxes
    'flux_up': {
        'units': 'W / m**2',
        'standard_name': 'upwelling_flux_in_air',
        'dims': ('col', 'lev'),
    },
    'flux_dn': {
        'units': 'W / m**2',
        'standard_name': 'downwelling_flux_in_air',
        'dims': ('col', 'lev'),
    },
    'flux_net': {
        'units': 'W / m**2',
        'standard_name': 'net_upward_flux_in_air',
        'dims': ('col', 'lev'),
    },
    'flux_dn_dir': {
        'units': 'W / m**2',
        'standard_name': 'direct_downwelling_flux_in_air',
        'dims': ('col', 'lev'),
    },
    'flux_up_jac': {
        'units': 'W / m**2 / K',
        'standard_name':
            'derivative_of_upwelling_flux_wrt_surface_temperature',
        'dims': ('col', 'lev'),
    },
    # Band-resolved fluxes
    'bnd_flux_up': {
        'units': 'W / m**2',
        'standard_name': 'upwelling_flux_in_air_per_band',
        'dims': ('col', 'lev', 'band'),
    },
    'bnd_flux_dn': {
        'units': 'W / m**2',
        'standard_name': 'downwelling_flux_in_air_per_band',
        'dims': ('col', 'lev', 'band'),
    },
    'bnd_flux_net': {
        'units': 'W / m**2',
        'standard_name': 'net_upward_flux_in_air_per_band',
        'dims': ('col', 'lev', 'band'),
    },
    'bnd_flux_dn_dir': {
        'units': 'W / m**2',
        'standard_name': 'direct_downwelling_flux_in_air_per_band',
        'dims': ('col', 'lev', 'band'),
    },
    # Heating rates
    'heating_rate': {
        'units': 'K / day',
        'standard_name': 'tendency_of_air_temperature_due_to_radiative_heating',
        'dims': ('col', 'lay'),
    },
}
