# -*- coding: utf-8 -*-
"""Shortwave radiative transfer.

The direct beam is attenuated following Beer's law. The diffuse radiation
is computed with the two-stream approximation of Zdunkowski et al. (1980)
for each layer and the adding method (Shonk and Hogan, 2008) for the
column.
"""
import logging

import numpy as np

from rrtmgpy.optical_props import OpticalProps1scl
from rrtmgpy.utils import (check_array_shape, check_array_dtype)


__all__ = [
    'sw_two_stream',
    'sw_source_2str',
    'adding',
    'sw_solver_noscat',
    'sw_solver_2stream',
    'rte_sw',
]

logger = logging.getLogger(__name__)


def sw_two_stream(mu0, tau, ssa, g):
    """Compute layer reflectance and transmittance.

    Parameters:
        mu0 (ndarray): Cosine of the solar zenith angle ``(ncol,)``.
            Has to be positive.
        tau (ndarray): Optical depth ``(ncol, nlay, ngpt)``.
        ssa (ndarray): Single-scattering albedo.
        g (ndarray): Asymmetry parameter.

    Returns:
        ndarray, ndarray, ndarray, ndarray, ndarray:
            Diffuse reflectance ``Rdif``, diffuse transmittance ``Tdif``,
            direct reflectance ``Rdir``, direct transmittance into the
            diffuse stream ``Tdir``, and direct transmittance ``Tnoscat``.
    """
    eps = np.finfo(tau.dtype).eps
    mu0 = np.asarray(mu0, dtype=tau.dtype)[:, np.newaxis, np.newaxis]

    # Zdunkowski Practical Improved Flux Method
    gamma1 = (8. - ssa * (5. + 3. * g)) * .25
    gamma2 = 3. * (ssa * (1. - g)) * .25
    gamma3 = (2. - 3. * mu0 * g) * .25
    gamma4 = 1. - gamma3

    alpha1 = gamma1 * gamma4 + gamma2 * gamma3
    alpha2 = gamma1 * gamma3 + gamma2 * gamma4

    k = np.sqrt(np.maximum((gamma1 - gamma2) * (gamma1 + gamma2), 1e-12))

    exp_minusktau = np.exp(-tau * k)
    exp_minus2ktau = exp_minusktau**2

    # Diffuse reflection and transmission
    RT_term = 1. / (k * (1. + exp_minus2ktau)
                    + gamma1 * (1. - exp_minus2ktau))

    Rdif = RT_term * gamma2 * (1. - exp_minus2ktau)
    Tdif = RT_term * 2. * k * exp_minusktau

    # Transmittance of the direct beam
    Tnoscat = np.exp(-tau / mu0)

    # Direct reflection and transmission
    k_mu = k * mu0
    k_gamma3 = k * gamma3
    k_gamma4 = k * gamma4

    denom = 1. - k_mu**2
    denom = np.where(np.abs(denom) >= eps, denom, eps)
    RT_term = ssa * RT_term / denom

    Rdir = RT_term * (
        (1. - k_mu) * (alpha2 + k_gamma3)
        - (1. + k_mu) * (alpha2 - k_gamma3) * exp_minus2ktau
        - 2. * (k_gamma3 - alpha2 * k_mu) * exp_minusktau * Tnoscat
    )

    Tdir = -RT_term * (
        (1. + k_mu) * (alpha1 + k_gamma4) * Tnoscat
        - (1. - k_mu) * (alpha1 - k_gamma4) * exp_minus2ktau * Tnoscat
        - 2. * (k_gamma4 + alpha1 * k_mu) * exp_minusktau
    )

    # Guard against round-off in nearly conservative, thick layers.
    Rdir = np.clip(Rdir, 0., 1. - Tnoscat)
    Tdir = np.clip(Tdir, 0., 1. - Tnoscat - Rdir)

    return Rdif, Tdif, Rdir, Tdir, Tnoscat


def sw_source_2str(Rdir, Tdir, Tnoscat, sfc_alb_dir, flux_dn_dir):
    """Compute the diffuse sources produced by the direct beam.

    The direct flux at the top interface ``flux_dn_dir[:, 0]`` has to be
    set before; the profile below is filled in.

    Returns:
        ndarray, ndarray, ndarray: Upward and downward layer sources and
            the surface source.
    """
    nlay = Rdir.shape[1]
    source_up = np.empty_like(Rdir)
    source_dn = np.empty_like(Rdir)

    for ilay in range(nlay):
        source_up[:, ilay] = Rdir[:, ilay] * flux_dn_dir[:, ilay]
        source_dn[:, ilay] = Tdir[:, ilay] * flux_dn_dir[:, ilay]
        flux_dn_dir[:, ilay + 1] = Tnoscat[:, ilay] * flux_dn_dir[:, ilay]

    source_sfc = flux_dn_dir[:, nlay] * sfc_alb_dir

    return source_up, source_dn, source_sfc


def adding(sfc_alb_dif, Rdif, Tdif, src_dn, src_up, src_sfc, flux_up,
           flux_dn):
    """Combine layers with the adding method (top of atmosphere at 0).

    Albedo and source of the atmosphere below each interface are
    accumulated from the surface upward. The diffuse fluxes are then
    resolved from the top downward, starting at ``flux_dn[:, 0]`` which
    has to be set before.
    """
    ncol, nlay, ngpt = Rdif.shape

    albedo = np.empty((ncol, nlay + 1, ngpt), dtype=Rdif.dtype)
    src = np.empty_like(albedo)
    denom = np.empty_like(Rdif)

    albedo[:, nlay] = sfc_alb_dif
    src[:, nlay] = src_sfc

    for ilay in reversed(range(nlay)):
        denom[:, ilay] = 1. / (1. - Rdif[:, ilay] * albedo[:, ilay + 1])
        albedo[:, ilay] = (Rdif[:, ilay] + Tdif[:, ilay]**2
                           * albedo[:, ilay + 1] * denom[:, ilay])
        src[:, ilay] = src_up[:, ilay] + Tdif[:, ilay] * denom[:, ilay] * (
            src[:, ilay + 1] + albedo[:, ilay + 1] * src_dn[:, ilay])

    flux_up[:, 0] = flux_dn[:, 0] * albedo[:, 0] + src[:, 0]

    for ilev in range(1, nlay + 1):
        ilay = ilev - 1
        flux_dn[:, ilev] = (
            Tdif[:, ilay] * flux_dn[:, ilay]
            + Rdif[:, ilay] * src[:, ilev]
            + src_dn[:, ilay]
        ) * denom[:, ilay]
        flux_up[:, ilev] = flux_dn[:, ilev] * albedo[:, ilev] + src[:, ilev]


def _flip(top_at_1, *arrays):
    """Return views with the vertical axis reversed if needed."""
    if top_at_1:
        return arrays
    return tuple(None if a is None else a[:, ::-1] for a in arrays)


def sw_solver_noscat(top_at_1, mu0, tau, flux_dir, inc_flux_dir):
    """Compute the direct beam only.

    Parameters:
        top_at_1 (bool): Vertical ordering.
        mu0 (ndarray): Cosine of the solar zenith angle ``(ncol,)``.
        tau (ndarray): Optical depth ``(ncol, nlay, ngpt)``.
        flux_dir (ndarray): Output ``(ncol, nlay + 1, ngpt)``.
        inc_flux_dir (ndarray): Direct flux through the top boundary
            (normal to the beam times ``mu0``) ``(ncol, ngpt)``.
    """
    tau, flux_dir = _flip(top_at_1, tau, flux_dir)
    mu0 = np.asarray(mu0, dtype=tau.dtype)[:, np.newaxis]

    flux_dir[:, 0] = inc_flux_dir
    for ilay in range(tau.shape[1]):
        flux_dir[:, ilay + 1] = flux_dir[:, ilay] * np.exp(
            -tau[:, ilay] / mu0)


def sw_solver_2stream(top_at_1, mu0, tau, ssa, g, sfc_alb_dir, sfc_alb_dif,
                      flux_up, flux_dn, flux_dir, inc_flux_dir,
                      inc_flux_dif=None):
    """Compute direct and diffuse fluxes with the two-stream method.

    ``flux_dn`` holds the total (direct plus diffuse) downward flux on
    return.

    Parameters:
        top_at_1 (bool): Vertical ordering.
        mu0 (ndarray): Cosine of the solar zenith angle ``(ncol,)``.
        tau, ssa, g (ndarray): Optical properties ``(ncol, nlay, ngpt)``.
        sfc_alb_dir, sfc_alb_dif (ndarray): Surface albedo for direct
            and diffuse radiation ``(ncol, ngpt)``.
        flux_up, flux_dn, flux_dir (ndarray): Output fluxes
            ``(ncol, nlay + 1, ngpt)``.
        inc_flux_dir (ndarray): Direct flux through the top boundary
            ``(ncol, ngpt)``.
        inc_flux_dif (ndarray): Diffuse downward flux at the top boundary
            ``(ncol, ngpt)``.
    """
    tau, ssa, g, flux_up, flux_dn, flux_dir = _flip(
        top_at_1, tau, ssa, g, flux_up, flux_dn, flux_dir)

    Rdif, Tdif, Rdir, Tdir, Tnoscat = sw_two_stream(mu0, tau, ssa, g)

    flux_dir[:, 0] = inc_flux_dir
    source_up, source_dn, source_sfc = sw_source_2str(
        Rdir, Tdir, Tnoscat, sfc_alb_dir, flux_dir)

    flux_dn[:, 0] = 0. if inc_flux_dif is None else inc_flux_dif
    adding(sfc_alb_dif, Rdif, Tdif, source_dn, source_up, source_sfc,
           flux_up, flux_dn)

    flux_dn += flux_dir


def rte_sw(optical_props, top_at_1, mu0, inc_flux_dir, sfc_alb_dir,
           sfc_alb_dif, gpt_flux_up, gpt_flux_dn, gpt_flux_dir,
           inc_flux_dif=None):
    """Compute spectrally resolved shortwave fluxes.

    Columns with ``mu0 <= 0`` (night) have zero flux everywhere.

    Parameters:
        optical_props (OpticalProps): Optical properties. Absorption-only
            properties yield the direct beam only.
        top_at_1 (bool): ``True`` if the top of the atmosphere is at the
            first layer index.
        mu0 (ndarray): Cosine of the solar zenith angle ``(ncol,)``.
        inc_flux_dir (ndarray): Incoming solar flux normal to the beam
            ``(ncol, ngpt)`` [W / m**2].
        sfc_alb_dir, sfc_alb_dif (float or ndarray): Surface albedo for
            direct and diffuse radiation, scalar or per band or g-point.
        gpt_flux_up, gpt_flux_dn, gpt_flux_dir (ndarray): Output fluxes
            ``(ncol, nlay + 1, ngpt)`` [W / m**2]. ``gpt_flux_dn`` is the
            total downward flux.
        inc_flux_dif (ndarray): Diffuse incoming flux ``(ncol, ngpt)``.

    Raises:
        ValueError: If any array does not match the problem size.
        TypeError: If any output array has a different precision.
    """
    tau = optical_props['tau']
    ncol, nlay, ngpt = tau.shape
    flux_shape = (ncol, nlay + 1, ngpt)

    for name, flux in (('gpt_flux_up', gpt_flux_up),
                       ('gpt_flux_dn', gpt_flux_dn),
                       ('gpt_flux_dir', gpt_flux_dir)):
        check_array_shape(flux, flux_shape, name)
        check_array_dtype(flux, tau.dtype, name)

    mu0 = np.asarray(mu0, dtype=tau.dtype)
    check_array_shape(mu0, (ncol,), 'mu0')
    check_array_shape(inc_flux_dir, (ncol, ngpt), 'inc_flux_dir')
    if inc_flux_dif is not None:
        check_array_shape(inc_flux_dif, (ncol, ngpt), 'inc_flux_dif')

    sfc_alb_dir = optical_props.expand_surface_property(
        sfc_alb_dir, ncol, 'sfc_alb_dir')
    sfc_alb_dif = optical_props.expand_surface_property(
        sfc_alb_dif, ncol, 'sfc_alb_dif')

    # Night columns get no incoming radiation at all.
    day = mu0 > 0.
    mu0_safe = np.where(day, mu0, 1.)
    inc_flux_dir = np.where(day[:, np.newaxis],
                            inc_flux_dir * mu0_safe[:, np.newaxis], 0.)
    if inc_flux_dif is not None:
        inc_flux_dif = np.where(day[:, np.newaxis], inc_flux_dif, 0.)

    if not day.all():
        logger.debug(f'{np.sum(~day)} columns without solar irradiation.')

    if isinstance(optical_props, OpticalProps1scl):
        sw_solver_noscat(top_at_1, mu0_safe, tau, gpt_flux_dir, inc_flux_dir)
        gpt_flux_up[...] = 0.
        gpt_flux_dn[...] = gpt_flux_dir
    else:
        sw_solver_2stream(
            top_at_1, mu0_safe, tau, optical_props['ssa'], optical_props['g'],
            sfc_alb_dir, sfc_alb_dif, gpt_flux_up, gpt_flux_dn, gpt_flux_dir,
            inc_flux_dir, inc_flux_dif=inc_flux_dif,
        )
