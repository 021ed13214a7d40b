# -*- coding: utf-8 -*-
"""Compute clear-sky fluxes and heating rates for a batch of columns.

The columns share an idealised tropical temperature profile but differ in
their water vapor content. The RRTMGP coefficient files are expected in
the ``data/`` directory.
"""
import logging

import matplotlib.pyplot as plt
import numpy as np

import rrtmgpy


logger = logging.getLogger(__name__)

rrtmgpy.enable_logging()

gases = ['h2o', 'co2', 'o3', 'n2o', 'ch4']
lw_gas_optics = rrtmgpy.netcdf.load_gas_optics(
    'data/rrtmgp-data-lw-g256-2018-12-04.nc', gases, allow_missing_minor=True)
sw_gas_optics = rrtmgpy.netcdf.load_gas_optics(
    'data/rrtmgp-data-sw-g224-2018-12-04.nc', gases, allow_missing_minor=True)

# Moist-adiabat-like temperature profile with an isothermal stratosphere.
play, plev = rrtmgpy.utils.get_pressure_grids(1000e2, 1, 60)
tlay = np.maximum(300. - 6.5e-3 * 7000. * np.log(1000e2 / play), 200.)

# Scale the water vapor from dry (50%) to moist (150%) columns.
ncol = 2000
h2o = np.maximum(0.03 * (play / 1000e2)**3, 4e-6)
h2o = h2o * np.linspace(0.5, 1.5, ncol)[:, np.newaxis]

gas_concs = rrtmgpy.GasConcentrations({
    'h2o': h2o,
    'co2': 400e-6,
    'o3': np.interp(np.log(play), np.log([1, 1e2, 1e3, 1e5]),
                    [5e-7, 2e-6, 8e-6, 3e-8]),
    'n2o': 3e-7,
    'ch4': 1.8e-6,
})
state = rrtmgpy.AtmosphericState.from_profile(
    play, plev, tlay, tsfc=300., gas_concs=gas_concs, ncol=ncol)

backend = rrtmgpy.backends.ThreadPoolBackend(max_workers=4)

lw_solver = rrtmgpy.RadiationSolverLongwave(
    lw_gas_optics, n_col_block=512, n_gauss_angles=3, backend=backend)
lw_output = lw_solver.create_output(state.ncol, state.nlay, jacobian=True)
lw_solver.solve(state, sfc_emis=0.98, output=lw_output)

sw_solver = rrtmgpy.RadiationSolverShortwave(
    sw_gas_optics, n_col_block=512, backend=backend)
sw_output = sw_solver.create_output(state.ncol, state.nlay)
sw_solver.solve(state, mu0=0.5, sfc_alb_dir=0.07, sfc_alb_dif=0.07,
                output=sw_output, tsi_scaling=0.5)

olr = lw_output.fluxes['flux_up'][:, -1]
logger.info(f'OLR ranges from {olr.min():.1f} to {olr.max():.1f} W/m^2.')

nc = rrtmgpy.netcdf.NetcdfHandler('results/clear_sky_fluxes.nc',
                                  title='Clear-sky fluxes')
nc.write(atmosphere=state, lw_fluxes=lw_output.fluxes,
         sw_fluxes=sw_output.fluxes)

fig, axes = plt.subplots(ncols=3, sharey=True, figsize=(12, 6))
rrtmgpy.plots.plot_overview_p_log(state, lw_output.fluxes, sw_output.fluxes,
                                  axes, col=ncol // 2)
fig.savefig('plots/clear_sky_fluxes.pdf')
