# -*- coding: utf-8 -*-
"""Locate the atmospheric state on the reference grid of a k-distribution.

The locator computes, once per call, the indices and interpolation weights
in temperature, pressure, and the binary species parameter eta. They are
shared by the major and minor absorbers, Rayleigh scattering, and the
Planck fractions.

Temperatures and pressures outside the tabulated range are clamped to the
edge of the table. This silently degrades the accuracy for such layers but
never aborts a calculation.
"""
import logging

import numpy as np


__all__ = [
    'InterpolationState',
    'locate',
]

logger = logging.getLogger(__name__)


class InterpolationState:
    """Indices and weights of all layers on the reference grid.

    Attributes:
        jtemp (ndarray): Lower temperature index ``(ncol, nlay)``.
        ftemp (ndarray): Temperature weight of the upper index.
        jpress (ndarray): Lower pressure index ``(ncol, nlay)``.
        fpress (ndarray): Pressure weight of the upper index.
        tropo (ndarray): ``True`` for layers in the lower atmosphere.
        itropo (ndarray): Regime index, 0 for the lower and 1 for the
            upper atmosphere. This is also the offset of the pressure
            index in the major absorption table.
        jeta (ndarray): Lower eta index ``(2, nflav, ncol, nlay)`` for the
            lower and upper temperature.
        col_mix (ndarray): Combined column amount of the key species pair
            ``(2, nflav, ncol, nlay)``.
        fminor (ndarray): Bilinear weights ``(2, 2, nflav, ncol, nlay)``
            in eta and temperature.
        fmajor (ndarray): Trilinear weights ``(2, 2, 2, nflav, ncol, nlay)``
            in temperature, pressure, and eta.
    """
    def __init__(self, jtemp, ftemp, jpress, fpress, tropo, itropo, jeta,
                 col_mix, fminor, fmajor):
        self.jtemp = jtemp
        self.ftemp = ftemp
        self.jpress = jpress
        self.fpress = fpress
        self.tropo = tropo
        self.itropo = itropo
        self.jeta = jeta
        self.col_mix = col_mix
        self.fminor = fminor
        self.fmajor = fmajor

    @classmethod
    def allocate(cls, ncol, nlay, nflav, dtype=np.float64):
        """Allocate uninitialised arrays for a given problem size."""
        return cls(
            jtemp=np.empty((ncol, nlay), dtype=np.int32),
            ftemp=np.empty((ncol, nlay), dtype=dtype),
            jpress=np.empty((ncol, nlay), dtype=np.int32),
            fpress=np.empty((ncol, nlay), dtype=dtype),
            tropo=np.empty((ncol, nlay), dtype=bool),
            itropo=np.empty((ncol, nlay), dtype=np.int32),
            jeta=np.empty((2, nflav, ncol, nlay), dtype=np.int32),
            col_mix=np.empty((2, nflav, ncol, nlay), dtype=dtype),
            fminor=np.empty((2, 2, nflav, ncol, nlay), dtype=dtype),
            fmajor=np.empty((2, 2, 2, nflav, ncol, nlay), dtype=dtype),
        )

    @property
    def ncol(self):
        return self.jtemp.shape[0]

    @property
    def nlay(self):
        return self.jtemp.shape[1]


def locate(tables, play, tlay, col_gas, out=None):
    """Compute indices and interpolation weights on the reference grid.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
        tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
        col_gas (ndarray): Column amounts ``(ngas + 1, ncol, nlay)``
            with dry air at index 0 [molecules / cm**2].
        out (InterpolationState): Preallocated result.

    Returns:
        InterpolationState: Indices and weights.
    """
    ncol, nlay = play.shape
    if out is None:
        out = InterpolationState.allocate(ncol, nlay, tables.nflav,
                                          dtype=play.dtype)

    # Temperature (equidistant grid).
    loctemp = (tlay - tables.temp_ref_min) / tables.temp_ref_delta
    out.jtemp[...] = np.clip(np.floor(loctemp), 0, tables.ntemp - 2)
    np.clip(loctemp - out.jtemp, 0., 1., out=out.ftemp)

    # Pressure (equidistant in log-space, decreasing).
    log_play = np.log(play)
    locpress = (tables.press_ref_log[0] - log_play) / tables.press_ref_log_delta
    out.jpress[...] = np.clip(np.floor(locpress), 0, tables.npres - 2)
    np.clip(locpress - out.jpress, 0., 1., out=out.fpress)

    # Layers at the tropopause pressure belong to the upper atmosphere.
    np.greater(log_play, tables.press_ref_trop_log, out=out.tropo)
    out.itropo[...] = np.logical_not(out.tropo)

    if logger.isEnabledFor(logging.DEBUG):
        n_clamped = np.count_nonzero(
            (loctemp < 0) | (loctemp > tables.ntemp - 1)
            | (locpress < 0) | (locpress > tables.npres - 1)
        )
        if n_clamped > 0:
            logger.debug(
                f'{n_clamped} layers are outside of the reference grid '
                'and are clamped to its edge.'
            )

    _locate_eta(tables, col_gas, out)

    return out


def _locate_eta(tables, col_gas, out):
    """Compute eta indices and the combined weights for all flavors."""
    neta = tables.neta
    gas1 = tables.flavor[:, 0]
    gas2 = tables.flavor[:, 1]

    col_gas1 = col_gas[gas1]
    col_gas2 = col_gas[gas2]
    threshold = 2 * np.finfo(out.col_mix.dtype).tiny

    for itemp in range(2):
        jtemp = (out.jtemp + itemp)[np.newaxis]
        itropo = out.itropo[np.newaxis]
        ratio = (tables.vmr_ref[jtemp, gas1[:, None, None], itropo]
                 / tables.vmr_ref[jtemp, gas2[:, None, None], itropo])

        col_mix = out.col_mix[itemp]
        np.multiply(ratio, col_gas2, out=col_mix)
        col_mix += col_gas1

        # Without any key species eta is set to the center of the grid.
        eta = np.full_like(col_mix, 0.5)
        np.divide(col_gas1, col_mix, out=eta, where=col_mix > threshold)

        loceta = eta * (neta - 1)
        jeta = out.jeta[itemp]
        jeta[...] = np.minimum(np.floor(loceta), neta - 2)
        feta = loceta - jeta

        ftemp_term = 1. - out.ftemp if itemp == 0 else out.ftemp

        out.fminor[0, itemp] = (1. - feta) * ftemp_term
        out.fminor[1, itemp] = feta * ftemp_term

        out.fmajor[itemp, 0] = (1. - out.fpress) * out.fminor[:, itemp]
        out.fmajor[itemp, 1] = out.fpress * out.fminor[:, itemp]
