# -*- coding: utf-8 -*-
"""Longwave radiative transfer without scattering.

The radiance is integrated with a linear-in-optical-depth source function
along a small number of angles (Gaussian quadrature). Emission and
absorption are treated, scattering is neglected.

All spectrally resolved arrays are stored column first: optical depth and
sources ``(ncol, nlay, ngpt)``, fluxes ``(ncol, nlay + 1, ngpt)``. The
vertical ordering is passed as ``top_at_1`` flag.
"""
import logging

import numpy as np

from rrtmgpy import constants
from rrtmgpy.optical_props import OpticalProps2str
from rrtmgpy.utils import (check_array_shape, check_array_dtype)


__all__ = [
    'lw_source_noscat',
    'lw_transport_noscat',
    'lw_solver_noscat',
    'lw_solver_noscat_gaussquad',
    'rte_lw',
]

logger = logging.getLogger(__name__)


def lw_source_noscat(lay_source, lev_source_up, lev_source_dn, tau, trans):
    """Compute the layer sources in upward and downward direction.

    The Planck function is assumed to vary linearly with optical depth
    within a layer (Clough et al., 1992).

    Parameters:
        lay_source (ndarray): Planck source at the layer center.
        lev_source_up (ndarray): Planck source at the interface through
            which upward radiance leaves the layer.
        lev_source_dn (ndarray): Planck source at the interface through
            which downward radiance leaves the layer.
        tau (ndarray): Optical depth along the path.
        trans (ndarray): Transmissivity ``exp(-tau)``.

    Returns:
        ndarray, ndarray: Downward and upward source.
    """
    tau_thresh = np.sqrt(np.finfo(tau.dtype).eps)

    # For optically thin layers use a Taylor expansion.
    with np.errstate(divide='ignore', invalid='ignore'):
        fact = np.where(
            tau > tau_thresh,
            (1. - trans) / tau - trans,
            tau * (0.5 - tau / 3.),
        )

    source_dn = (1. - trans) * lev_source_dn + 2. * fact * (
        lay_source - lev_source_dn)
    source_up = (1. - trans) * lev_source_up + 2. * fact * (
        lay_source - lev_source_up)

    return source_dn, source_up


def lw_transport_noscat(trans, sfc_albedo, source_dn, source_up, source_sfc,
                        radn_up, radn_dn):
    """Transport radiance through the column (top of atmosphere at 0).

    The downward radiance at the top interface ``radn_dn[:, 0]`` is the
    boundary condition and has to be set before.

    Parameters:
        trans (ndarray): Layer transmissivity ``(ncol, nlay, ngpt)``.
        sfc_albedo (ndarray): Surface reflectivity ``(ncol, ngpt)``.
        source_dn, source_up (ndarray): Layer sources.
        source_sfc (ndarray): Surface emission ``(ncol, ngpt)``.
        radn_up, radn_dn (ndarray): Radiance ``(ncol, nlay + 1, ngpt)``.
    """
    nlay = trans.shape[1]

    for ilay in range(nlay):
        radn_dn[:, ilay + 1] = (trans[:, ilay] * radn_dn[:, ilay]
                                + source_dn[:, ilay])

    radn_up[:, nlay] = radn_dn[:, nlay] * sfc_albedo + source_sfc

    for ilay in reversed(range(nlay)):
        radn_up[:, ilay] = (trans[:, ilay] * radn_up[:, ilay + 1]
                            + source_up[:, ilay])


def lw_solver_noscat(top_at_1, secant, weight, tau, lay_source,
                     lev_source_inc, lev_source_dec, sfc_emis, sfc_src,
                     radn_up, radn_dn, inc_flux=None, sfc_src_jac=None,
                     radn_up_jac=None):
    """Compute fluxes along a single angle.

    The returned fluxes are the radiances multiplied by
    ``2 * pi * weight``.

    Parameters:
        top_at_1 (bool): ``True`` if the top of the atmosphere is at the
            first layer index.
        secant (float): Secant of the propagation angle.
        weight (float): Quadrature weight.
        tau (ndarray): Absorption optical depth ``(ncol, nlay, ngpt)``.
        lay_source, lev_source_inc, lev_source_dec (ndarray): Planck
            sources ``(ncol, nlay, ngpt)``.
        sfc_emis (ndarray): Surface emissivity ``(ncol, ngpt)``.
        sfc_src (ndarray): Surface Planck source ``(ncol, ngpt)``.
        radn_up, radn_dn (ndarray): Output ``(ncol, nlay + 1, ngpt)``.
        inc_flux (ndarray): Incoming flux at the top ``(ncol, ngpt)``,
            assumed to be isotropic.
        sfc_src_jac (ndarray): Derivative of the surface source with
            respect to surface temperature ``(ncol, ngpt)``.
        radn_up_jac (ndarray): Output derivative of the upward flux.
    """
    if top_at_1:
        lev_source_up, lev_source_dn = lev_source_dec, lev_source_inc
    else:
        # Flip the vertical axis so that transport always starts at
        # index 0. All flipped arrays are views.
        tau = tau[:, ::-1]
        lay_source = lay_source[:, ::-1]
        lev_source_up = lev_source_inc[:, ::-1]
        lev_source_dn = lev_source_dec[:, ::-1]
        radn_up = radn_up[:, ::-1]
        radn_dn = radn_dn[:, ::-1]
        if radn_up_jac is not None:
            radn_up_jac = radn_up_jac[:, ::-1]

    tau_loc = tau * secant
    trans = np.exp(-tau_loc)

    source_dn, source_up = lw_source_noscat(
        lay_source, lev_source_up, lev_source_dn, tau_loc, trans)

    if inc_flux is None:
        radn_dn[:, 0] = 0.
    else:
        radn_dn[:, 0] = inc_flux / np.pi

    sfc_albedo = 1. - sfc_emis
    source_sfc = sfc_emis * sfc_src

    lw_transport_noscat(trans, sfc_albedo, source_dn, source_up, source_sfc,
                        radn_up, radn_dn)

    factor = 2. * np.pi * weight
    radn_up *= factor
    radn_dn *= factor

    if radn_up_jac is not None:
        nlay = tau.shape[1]
        radn_up_jac[:, nlay] = sfc_emis * sfc_src_jac
        for ilay in reversed(range(nlay)):
            radn_up_jac[:, ilay] = trans[:, ilay] * radn_up_jac[:, ilay + 1]
        radn_up_jac *= factor


def lw_solver_noscat_gaussquad(top_at_1, n_gauss_angles, tau, lay_source,
                               lev_source_inc, lev_source_dec, sfc_emis,
                               sfc_src, flux_up, flux_dn, inc_flux=None,
                               sfc_src_jac=None, flux_up_jac=None):
    """Compute fluxes using Gaussian quadrature over 1 to 4 angles.

    With one angle the diffusivity approximation (secant 1.66) is used.

    See :func:`lw_solver_noscat` for a description of the parameters.
    """
    if not 1 <= n_gauss_angles <= len(constants.gauss_secants):
        raise ValueError(
            f'Number of Gaussian quadrature angles has to be between 1 and '
            f'{len(constants.gauss_secants)}, not {n_gauss_angles}.'
        )

    secants = constants.gauss_secants[n_gauss_angles - 1]
    weights = constants.gauss_weights[n_gauss_angles - 1]

    lw_solver_noscat(
        top_at_1, secants[0], weights[0], tau, lay_source, lev_source_inc,
        lev_source_dec, sfc_emis, sfc_src, flux_up, flux_dn,
        inc_flux=inc_flux, sfc_src_jac=sfc_src_jac, radn_up_jac=flux_up_jac,
    )

    if n_gauss_angles == 1:
        return

    radn_up = np.empty_like(flux_up)
    radn_dn = np.empty_like(flux_dn)
    radn_up_jac = None if flux_up_jac is None else np.empty_like(flux_up_jac)

    for secant, weight in zip(secants[1:], weights[1:]):
        lw_solver_noscat(
            top_at_1, secant, weight, tau, lay_source, lev_source_inc,
            lev_source_dec, sfc_emis, sfc_src, radn_up, radn_dn,
            inc_flux=inc_flux, sfc_src_jac=sfc_src_jac,
            radn_up_jac=radn_up_jac,
        )
        flux_up += radn_up
        flux_dn += radn_dn
        if flux_up_jac is not None:
            flux_up_jac += radn_up_jac


def rte_lw(optical_props, top_at_1, sources, sfc_emis, gpt_flux_up,
           gpt_flux_dn, inc_flux=None, n_gauss_angles=1,
           gpt_flux_up_jac=None):
    """Compute spectrally resolved longwave fluxes.

    Parameters:
        optical_props (OpticalProps): Optical properties. For two-stream
            properties only the absorption ``tau * (1 - ssa)`` is used.
        top_at_1 (bool): ``True`` if the top of the atmosphere is at the
            first layer index.
        sources (SourceFuncLW): Planck sources.
        sfc_emis (float or ndarray): Surface emissivity, scalar or
            ``(ncol, nband)`` or ``(ncol, ngpt)``.
        gpt_flux_up, gpt_flux_dn (ndarray): Output fluxes
            ``(ncol, nlay + 1, ngpt)`` [W / m**2].
        inc_flux (ndarray): Incoming flux at the top of the atmosphere
            ``(ncol, ngpt)`` [W / m**2].
        n_gauss_angles (int): Number of quadrature angles (1 to 4).
        gpt_flux_up_jac (ndarray): Output derivative of the upward flux
            with respect to the surface temperature [W / m**2 / K].

    Raises:
        ValueError: If any array does not match the problem size.
        TypeError: If any output array has a different precision.
    """
    tau = optical_props['tau']
    ncol, nlay, ngpt = tau.shape
    flux_shape = (ncol, nlay + 1, ngpt)

    for name, flux in (('gpt_flux_up', gpt_flux_up),
                       ('gpt_flux_dn', gpt_flux_dn),
                       ('gpt_flux_up_jac', gpt_flux_up_jac)):
        if flux is not None:
            check_array_shape(flux, flux_shape, name)
            check_array_dtype(flux, tau.dtype, name)

    for name in ('lay_source', 'lev_source_inc', 'lev_source_dec'):
        check_array_shape(sources[name], tau.shape, name)

    if inc_flux is not None:
        check_array_shape(inc_flux, (ncol, ngpt), 'inc_flux')

    sfc_emis = optical_props.expand_surface_property(sfc_emis, ncol,
                                                     'sfc_emis')

    if isinstance(optical_props, OpticalProps2str):
        logger.debug('Longwave solver neglects scattering.')
        tau = tau * (1. - optical_props['ssa'])

    lw_solver_noscat_gaussquad(
        top_at_1, n_gauss_angles, tau,
        sources['lay_source'], sources['lev_source_inc'],
        sources['lev_source_dec'], sfc_emis, sources['sfc_source'],
        gpt_flux_up, gpt_flux_dn, inc_flux=inc_flux,
        sfc_src_jac=sources['sfc_source_jac'], flux_up_jac=gpt_flux_up_jac,
    )
