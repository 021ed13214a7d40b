# -*- coding: utf-8 -*-
"""Atmospheric state passed to the radiation solvers.

**Example**

Create an atmospheric state for a single tropical column and tile it to
many columns:

    >>> import rrtmgpy
    >>> play, plev = rrtmgpy.utils.get_pressure_grids(num=60)
    >>> gas_concs = rrtmgpy.GasConcentrations({'h2o': 0.01, 'co2': 400e-6})
    >>> state = rrtmgpy.AtmosphericState.from_profile(
    ...     play=play, plev=plev, tlay=tlay, tsfc=300., gas_concs=gas_concs,
    ...     ncol=128)

"""
import logging

import numpy as np

from rrtmgpy import constants
from rrtmgpy.component import Component
from rrtmgpy.gas_concentrations import GasConcentrations
from rrtmgpy.utils import (broadcast_columns, check_array_shape, is_top_at_1)


__all__ = [
    'AtmosphericState',
    'get_col_dry',
    'interpolate_level_temperature',
]


logger = logging.getLogger(__name__)


def get_col_dry(vmr_h2o, plev):
    r"""Calculate the number of dry air molecules in each layer.

    .. math::
        N_\mathrm{dry} = \frac{|\Delta p| \, N_\mathrm{A}}
            {g \, M_\mathrm{air} \, (1 + \mathrm{H_2O})}

    where the molar mass of moist air :math:`M_\mathrm{air}` accounts for
    the water vapor content.

    Parameters:
        vmr_h2o (ndarray): Water vapor volume mixing ratio ``(ncol, nlay)``.
        plev (ndarray): Pressure at layer interfaces ``(ncol, nlay + 1)``
            [Pa].

    Returns:
        ndarray: Dry air column amount [molecules / cm**2].
    """
    vmr_h2o = np.asarray(vmr_h2o)
    plev = np.asarray(plev)

    m_air = ((constants.m_dry + constants.m_h2o * vmr_h2o)
             / (1. + vmr_h2o))

    delta_plev = np.abs(np.diff(plev, axis=-1))

    # The factor 1e-4 converts from m^-2 to cm^-2.
    col_dry = (1e-4 * delta_plev * constants.avogadro
               / (m_air * constants.g))

    return col_dry / (1. + vmr_h2o)


def interpolate_level_temperature(play, plev, tlay):
    """Interpolate layer temperatures onto the layer interfaces.

    Interior levels are weighted by pressure, the outermost levels are
    extrapolated linearly in pressure.

    Parameters:
        play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
        plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
        tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].

    Returns:
        ndarray: Level temperature ``(ncol, nlay + 1)`` [K].
    """
    if play.shape[-1] < 2:
        raise ValueError(
            'At least two layers are needed to interpolate temperatures.')

    tlev = np.empty(plev.shape, dtype=tlay.dtype)

    tlev[:, 0] = tlay[:, 0] + (plev[:, 0] - play[:, 0]) * (
        (tlay[:, 1] - tlay[:, 0]) / (play[:, 1] - play[:, 0]))

    tlev[:, 1:-1] = (
        play[:, :-1] * tlay[:, :-1] * (plev[:, 1:-1] - play[:, 1:])
        + play[:, 1:] * tlay[:, 1:] * (play[:, :-1] - plev[:, 1:-1])
    ) / (plev[:, 1:-1] * (play[:, :-1] - play[:, 1:]))

    tlev[:, -1] = tlay[:, -1] + (plev[:, -1] - play[:, -1]) * (
        (tlay[:, -1] - tlay[:, -2]) / (play[:, -1] - play[:, -2]))

    return tlev


class AtmosphericState(Component):
    """Pressure, temperature, and gas concentrations of a batch of columns.

    The vertical ordering is arbitrary but has to be the same for all
    columns: the top of the atmosphere is either at the first or the
    last layer index.
    """
    def __init__(self, play, plev, tlay, tsfc=None, tlev=None,
                 gas_concs=None, col_dry=None, dtype=None):
        """
        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            tsfc (float or ndarray): Surface temperature ``(ncol,)`` [K].
                If ``None``, the temperature of the lowermost interface
                is used.
            tlev (ndarray): Interface temperature ``(ncol, nlay + 1)`` [K].
                If ``None``, it is interpolated from the layer temperature.
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            col_dry (ndarray): Dry air column amount ``(ncol, nlay)``
                [molecules / cm**2]. If ``None``, it is derived from the
                water vapor concentration and the interface pressure.
            dtype (numpy.dtype): Floating point precision of all arrays.
                Defaults to the precision of ``play``.
        """
        play = np.atleast_2d(play)
        dtype = play.dtype if dtype is None else np.dtype(dtype)
        if not np.issubdtype(dtype, np.floating):
            dtype = np.dtype(np.float64)

        play = np.asarray(play, dtype=dtype)
        ncol, nlay = play.shape

        plev = np.asarray(np.atleast_2d(plev), dtype=dtype)
        tlay = np.asarray(np.atleast_2d(tlay), dtype=dtype)
        check_array_shape(plev, (ncol, nlay + 1), 'plev')
        check_array_shape(tlay, (ncol, nlay), 'tlay')

        if tlev is None:
            tlev = interpolate_level_temperature(play, plev, tlay)
        tlev = np.asarray(np.atleast_2d(tlev), dtype=dtype)
        check_array_shape(tlev, (ncol, nlay + 1), 'tlev')

        top_at_1 = is_top_at_1(play)
        if tsfc is None:
            tsfc = tlev[:, -1] if top_at_1 else tlev[:, 0]
        tsfc = np.array(broadcast_columns(tsfc, (ncol,)), dtype=dtype)

        if gas_concs is None:
            gas_concs = GasConcentrations()
        self._gas_concs = gas_concs

        if col_dry is None:
            vmr_h2o = broadcast_columns(
                gas_concs.get_vmr('h2o', default=0.), (ncol, nlay))
            col_dry = get_col_dry(vmr_h2o, plev)
        col_dry = np.asarray(np.atleast_2d(col_dry), dtype=dtype)
        check_array_shape(col_dry, (ncol, nlay), 'col_dry')

        self.top_at_1 = top_at_1

        self.create_variable('play', play)
        self.create_variable('plev', plev)
        self.create_variable('tlay', tlay)
        self.create_variable('tlev', tlev)
        self.create_variable('tsfc', tsfc)
        self.create_variable('col_dry', col_dry)

        self.coords = {
            'col': np.arange(ncol),
            'lay': np.arange(nlay),
            'lev': np.arange(nlay + 1),
        }

    @classmethod
    def from_profile(cls, play, plev, tlay, tsfc=None, tlev=None,
                     gas_concs=None, ncol=1, dtype=None):
        """Create a state with identical columns from single profiles.

        Parameters:
            play (ndarray): Layer pressure ``(nlay,)`` [Pa].
            plev (ndarray): Interface pressure ``(nlay + 1,)`` [Pa].
            tlay (ndarray): Layer temperature ``(nlay,)`` [K].
            tsfc (float): Surface temperature [K].
            tlev (ndarray): Interface temperature ``(nlay + 1,)`` [K].
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            ncol (int): Number of columns.
            dtype (numpy.dtype): Floating point precision.

        Returns:
            AtmosphericState
        """
        def tile(profile):
            if profile is None:
                return None
            return np.tile(np.asarray(profile), (ncol, 1))

        return cls(
            play=tile(play),
            plev=tile(plev),
            tlay=tile(tlay),
            tsfc=tsfc,
            tlev=tile(tlev),
            gas_concs=gas_concs,
            dtype=dtype,
        )

    @property
    def gas_concs(self):
        """Gas concentrations (:class:`GasConcentrations`)."""
        return self._gas_concs

    @property
    def ncol(self):
        return self['play'].shape[0]

    @property
    def nlay(self):
        return self['play'].shape[1]

    @property
    def dtype(self):
        return self['play'].dtype

    def subset(self, start, stop, dim='col'):
        view = super().subset(start, stop, dim=dim)
        if dim == 'col':
            view._gas_concs = self._gas_concs.subset(start, stop)

        return view
