# -*- coding: utf-8 -*-
"""Planck sources of the longwave k-distribution.

The source of every g-point is the band-integrated Planck function times
the fraction of the band emission falling into the g-point. The Planck
fractions are interpolated like the major absorption coefficients, the
Planck function is linearly interpolated in temperature.
"""
import logging

import numpy as np

from rrtmgpy.gas_optics.absorption import interpolate_by_flavor


__all__ = [
    'planck_function',
    'compute_planck_fraction',
    'compute_planck_source',
]

logger = logging.getLogger(__name__)


def planck_function(tables, temperature, return_derivative=False):
    """Band-integrated Planck function at given temperatures.

    Temperatures outside of the table are clamped to its edges, where the
    derivative is zero.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        temperature (ndarray): Temperature [K].
        return_derivative (bool): Also return the derivative with
            respect to temperature.

    Returns:
        ndarray: Planck function with an additional trailing band
        dimension. If ``return_derivative`` is ``True``, a tuple of the
        Planck function and its derivative [per K].
    """
    totplnk = tables.totplnk
    delta = tables.totplnk_delta

    val0 = (np.asarray(temperature) - tables.temp_ref_min) / delta
    index = np.clip(np.floor(val0), 0, totplnk.shape[0] - 2).astype(np.intp)
    frac = np.clip(val0 - index, 0., 1.)[..., np.newaxis]

    lower = totplnk[index]
    slope = totplnk[index + 1] - lower
    planck = lower + frac * slope

    if return_derivative:
        inside = (val0 >= 0.) & (val0 <= totplnk.shape[0] - 1)
        return planck, slope / delta * inside[..., np.newaxis]

    return planck


def compute_planck_fraction(tables, interp, out=None):
    """Interpolate the Planck fractions of all g-points.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        interp (InterpolationState): Result of the grid locator.
        out (ndarray): Preallocated output ``(ncol, nlay, ngpt)``.

    Returns:
        ndarray: Planck fraction ``(ncol, nlay, ngpt)``.
    """
    if out is None:
        out = np.empty((interp.ncol, interp.nlay, tables.ngpt),
                       dtype=tables.planck_frac.dtype)

    band_flavor = tables.gpoint_flavor[:, tables.band_lims_gpt[:, 0]]
    for ibnd, (start, stop) in enumerate(tables.band_lims_gpt):
        iflav = band_flavor[interp.itropo, ibnd]
        out[..., start:stop] = interpolate_by_flavor(
            tables.planck_frac, interp, iflav, start, stop)

    return out


def compute_planck_source(tables, interp, tlay, tlev, tsfc, top_at_1,
                          sources, pfrac=None):
    """Compute the Planck sources of layers, interfaces, and surface.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        interp (InterpolationState): Result of the grid locator.
        tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
        tlev (ndarray): Interface temperature ``(ncol, nlay + 1)`` [K].
        tsfc (ndarray): Surface temperature ``(ncol,)`` [K].
        top_at_1 (bool): ``True`` if the top of the atmosphere is at the
            first layer index.
        sources (SourceFuncLW): Output sources.
        pfrac (ndarray): Scratch array for the Planck fractions
            ``(ncol, nlay, ngpt)``.

    Returns:
        SourceFuncLW: The sources.
    """
    pfrac = compute_planck_fraction(tables, interp, out=pfrac)
    band_of_gpt = tables.band_of_gpt

    planck_lay = planck_function(tables, tlay)
    np.multiply(pfrac, planck_lay[..., band_of_gpt],
                out=sources['lay_source'])

    planck_lev = planck_function(tables, tlev)[..., band_of_gpt]
    np.multiply(pfrac, planck_lev[:, :-1], out=sources['lev_source_dec'])
    np.multiply(pfrac, planck_lev[:, 1:], out=sources['lev_source_inc'])

    # The surface source uses the Planck fraction of the lowermost layer.
    sfc_lay = interp.nlay - 1 if top_at_1 else 0
    planck_sfc, planck_sfc_jac = planck_function(
        tables, tsfc, return_derivative=True)
    np.multiply(pfrac[:, sfc_lay], planck_sfc[:, band_of_gpt],
                out=sources['sfc_source'])
    np.multiply(pfrac[:, sfc_lay], planck_sfc_jac[:, band_of_gpt],
                out=sources['sfc_source_jac'])

    return sources
