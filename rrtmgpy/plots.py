# -*- coding: utf-8 -*-
"""Plotting related functions.
"""
import matplotlib.pyplot as plt
import numpy as np
import typhon.plots

from rrtmgpy.utils import plev_from_phlev


__all__ = [
    'plot_fluxes_p_log',
    'plot_heating_rates_p_log',
    'plot_overview_p_log',
]


def plot_fluxes_p_log(plev, fluxes, col=0, ax=None, **kwargs):
    """Plot upward, downward, and net flux of one column.

    Parameters:
        plev (ndarray): Interface pressure ``(ncol, nlev)`` [Pa].
        fluxes (Fluxes): Broadband fluxes.
        col (int): Column index.
        ax (AxesSubplot): Axes to plot in.
        **kwargs: Additional keyword arguments passed to all calls
            of `typhon.plots.profile_p_log`.
    """
    if ax is None:
        ax = plt.gca()

    p = np.atleast_2d(plev)[col]
    for name, label in (('flux_up', 'Upward'),
                        ('flux_dn', 'Downward'),
                        ('flux_net', 'Net')):
        typhon.plots.profile_p_log(p, fluxes[name][col], ax=ax, label=label,
                                   **kwargs)
    ax.set_xlabel('Flux [$\\mathsf{W\\,m^{-2}}$]')
    ax.legend()


def plot_heating_rates_p_log(plev, lw_fluxes=None, sw_fluxes=None, col=0,
                             ax=None):
    """Plot longwave, shortwave, and net heating rate of one column.

    Parameters:
        plev (ndarray): Interface pressure ``(ncol, nlev)`` [Pa].
        lw_fluxes (Fluxes): Longwave fluxes.
        sw_fluxes (Fluxes): Shortwave fluxes.
        col (int): Column index.
        ax (AxesSubplot): Axes to plot in.
    """
    if ax is None:
        ax = plt.gca()

    plev = np.atleast_2d(plev)
    play = plev_from_phlev(plev[col])

    net = np.zeros_like(play)
    for fluxes, label in ((lw_fluxes, 'Longwave'), (sw_fluxes, 'Shortwave')):
        if fluxes is not None:
            heating = fluxes.heating_rate(plev)[col]
            typhon.plots.profile_p_log(play, heating, ax=ax, label=label)
            net += heating

    if lw_fluxes is not None and sw_fluxes is not None:
        typhon.plots.profile_p_log(play, net, ax=ax, label='Net rate',
                                   color='k')

    ax.set_xlabel('Heatingrate [K/day]')
    ax.legend(loc='upper center')


def plot_overview_p_log(state, lw_fluxes, sw_fluxes, axes, col=0):
    """Plot temperature, fluxes and heating rates of one column.

    Parameters:
        state (AtmosphericState): Atmospheric state.
        lw_fluxes (Fluxes): Longwave fluxes.
        sw_fluxes (Fluxes): Shortwave fluxes.
        axes (list, tuple or ndarray): Three AxesSubplots.
        col (int): Column index.
    """
    if len(axes) != 3:
        raise ValueError('Need to pass three AxesSubplot.')
    ax1, ax2, ax3 = np.ravel(axes)

    typhon.plots.profile_p_log(state['play'][col], state['tlay'][col], ax=ax1)
    ax1.set_xlabel('Temperature [K]')

    typhon.plots.profile_p_log(state['plev'][col],
                               lw_fluxes['flux_net'][col]
                               + sw_fluxes['flux_net'][col],
                               ax=ax2, color='k')
    ax2.set_xlabel('Net flux [$\\mathsf{W\\,m^{-2}}$]')

    plot_heating_rates_p_log(state['plev'], lw_fluxes, sw_fluxes, col=col,
                             ax=ax3)
