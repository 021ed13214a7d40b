# -*- coding: utf-8 -*-
"""Assemble gaseous optical depths from the tabulated coefficients.

The optical depth of every g-point is the sum of the major absorption by
the key species of the band and the absorption of all minor gases that
are active in the g-point and regime. For tables including Rayleigh
scattering, the scattering optical depth is computed separately and only
combined with the absorption when the optical properties are filled.

Internally, all arrays are stored g-point first ``(ngpt, nlay, ncol)``.
:func:`combine_and_reorder` converts them into the column first layout
``(ncol, nlay, ngpt)`` of :mod:`rrtmgpy.optical_props`.
"""
import logging
from collections import namedtuple

import numpy as np

from rrtmgpy import constants
from rrtmgpy.optical_props import OpticalProps2str


__all__ = [
    'MinorAbsorber',
    'SCALING_MODES',
    'resolve_minor_absorbers',
    'AbsorptionAssembler',
    'combine_and_reorder',
]

logger = logging.getLogger(__name__)

LOWER = 0
UPPER = 1

# Scaling modes of minor absorbers. Both 'complement' and 'gas' include
# the density scaling.
SCALING_MODES = ('plain', 'density', 'complement', 'gas')


MinorAbsorber = namedtuple(
    'MinorAbsorber',
    [
        'gas',  # index of the minor gas in the column amounts
        'gpt_start',
        'gpt_stop',
        'regime',  # LOWER or UPPER
        'scaling',  # one of SCALING_MODES
        'scaling_gas',  # index of the scaling gas (0 if not used)
        'kminor_start',
    ]
)
MinorAbsorber.__doc__ = """Minor absorber resolved against the available gases."""


def _scaling_mode(contribution, scaling_gas):
    if not contribution.scales_with_density:
        return 'plain'
    if scaling_gas == 0:
        return 'density'
    return 'complement' if contribution.scale_by_complement else 'gas'


def resolve_minor_absorbers(tables, available_gases,
                            allow_missing_minor=False):
    """Resolve the minor absorbers of both regimes.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        available_gases (iterable[str]): Names of the gases that will be
            provided to the gas optics.
        allow_missing_minor (bool): If ``True``, minor absorbers whose gas
            is not available are dropped instead of raising an error.

    Returns:
        tuple[MinorAbsorber]: All active minor absorbers.

    Raises:
        ValueError: If a minor gas is not available and
            ``allow_missing_minor`` is ``False``.
    """
    available = {name.lower() for name in available_gases}

    absorbers = []
    for regime, contributions in ((LOWER, tables.minor_lower),
                                  (UPPER, tables.minor_upper)):
        for m in contributions:
            if m.gas.lower() not in available:
                if allow_missing_minor:
                    logger.debug(f'Drop minor absorber "{m.gas}".')
                    continue
                raise ValueError(
                    f'Minor gas "{m.gas}" is required by the tables '
                    'but is not available.'
                )

            gas = tables.gas_index(m.gas)
            if gas == 0:
                raise ValueError(
                    f'Minor gas "{m.gas}" is not part of the tables.')

            scaling_gas = 0
            if m.scaling_gas:
                scaling_gas = tables.gas_index(m.scaling_gas)
            scaling = _scaling_mode(m, scaling_gas)

            # An unavailable scaling gas has no concentration.
            if (scaling in ('complement', 'gas')
                    and m.scaling_gas.lower() not in available):
                if scaling == 'gas':
                    logger.warning(
                        f'Drop minor absorber "{m.gas}" because its scaling '
                        f'gas "{m.scaling_gas}" is not available.'
                    )
                    continue
                logger.warning(
                    f'Scaling gas "{m.scaling_gas}" of minor absorber '
                    f'"{m.gas}" is not available and is assumed to be zero.'
                )

            absorbers.append(MinorAbsorber(
                gas=gas,
                gpt_start=m.gpt_start,
                gpt_stop=m.gpt_stop,
                regime=regime,
                scaling=scaling,
                scaling_gas=scaling_gas,
                kminor_start=m.kminor_start,
            ))

    return tuple(absorbers)


class AbsorptionAssembler:
    """Compute absorption and Rayleigh optical depths of all g-points."""
    def __init__(self, tables, minor_absorbers):
        """
        Parameters:
            tables (ReferenceTables): Tabulated k-distribution.
            minor_absorbers (tuple[MinorAbsorber]): Resolved minor
                absorbers (see :func:`resolve_minor_absorbers`).
        """
        self.tables = tables
        self.minor_absorbers = minor_absorbers

        # All g-points of a band share the flavor of the band.
        self.band_flavor = tables.gpoint_flavor[:, tables.band_lims_gpt[:, 0]]

        if tables.has_rayleigh:
            self.krayl = np.stack([tables.rayl_lower, tables.rayl_upper])
        else:
            self.krayl = None

    @property
    def has_rayleigh(self):
        return self.krayl is not None

    def compute_gas_taus(self, interp, col_gas, col_h2o, play, tlay, tau,
                         tau_rayleigh=None):
        """Compute the gaseous optical depth.

        Parameters:
            interp (InterpolationState): Result of the grid locator.
            col_gas (ndarray): Column amounts ``(ngas + 1, ncol, nlay)``.
            col_h2o (ndarray): Water vapor column ``(ncol, nlay)``.
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            tau (ndarray): Output absorption optical depth
                ``(ngpt, nlay, ncol)``.
            tau_rayleigh (ndarray): Output Rayleigh optical depth
                ``(ngpt, nlay, ncol)``, only used for tables with Rayleigh
                scattering.

        Returns:
            ndarray, ndarray: Absorption and Rayleigh optical depth.
        """
        self.compute_tau_major(interp, tau)
        self.compute_tau_minor(interp, col_gas, col_h2o, play, tlay, tau)

        if self.has_rayleigh and tau_rayleigh is not None:
            self.compute_tau_rayleigh(interp, col_gas[0], col_h2o,
                                      tau_rayleigh)

        return tau, tau_rayleigh

    def compute_tau_major(self, interp, tau):
        """Trilinear interpolation of the major absorption coefficients."""
        for ibnd, (start, stop) in enumerate(self.tables.band_lims_gpt):
            iflav = self.band_flavor[interp.itropo, ibnd]
            tau_band = interpolate_by_flavor(
                self.tables.kmajor, interp, iflav, start, stop,
                scale_by_col_mix=True,
            )
            tau[start:stop] = tau_band.transpose(2, 1, 0)

        return tau

    def compute_tau_minor(self, interp, col_gas, col_h2o, play, tlay, tau):
        """Add the absorption of all minor gases to ``tau``."""
        for minor in self.minor_absorbers:
            if minor.regime == LOWER:
                cols, lays = np.nonzero(interp.tropo)
                kminor = self.tables.kminor_lower
            else:
                cols, lays = np.nonzero(~interp.tropo)
                kminor = self.tables.kminor_upper

            if cols.size == 0:
                continue

            scaling = col_gas[minor.gas, cols, lays]

            if minor.scaling != 'plain':
                scaling = scaling * (constants.pascal_to_hectopascal
                                     * play[cols, lays] / tlay[cols, lays])

            if minor.scaling in ('complement', 'gas'):
                vmr_fact = 1. / col_gas[0, cols, lays]
                dry_fact = 1. / (1. + col_h2o[cols, lays] * vmr_fact)
                vmr_scaling = (col_gas[minor.scaling_gas, cols, lays]
                               * vmr_fact * dry_fact)

                if minor.scaling == 'complement':
                    scaling = scaling * (1. - vmr_scaling)
                else:
                    scaling = scaling * vmr_scaling

            # The eta interpolation uses the flavor of the first g-point.
            iflav = self.tables.gpoint_flavor[minor.regime, minor.gpt_start]
            width = minor.gpt_stop - minor.gpt_start
            contrib = slice(minor.kminor_start, minor.kminor_start + width)

            jtemp = interp.jtemp[cols, lays]
            jeta = interp.jeta[:, iflav, cols, lays]
            fminor = interp.fminor[:, :, iflav, cols, lays]

            k = (fminor[0, 0, :, None] * kminor[jtemp, jeta[0], contrib]
                 + fminor[1, 0, :, None] * kminor[jtemp, jeta[0] + 1, contrib]
                 + fminor[0, 1, :, None] * kminor[jtemp + 1, jeta[1], contrib]
                 + fminor[1, 1, :, None] * kminor[jtemp + 1, jeta[1] + 1, contrib])

            tau[minor.gpt_start:minor.gpt_stop, lays, cols] += (
                scaling[:, None] * k).T

        return tau

    def compute_tau_rayleigh(self, interp, col_dry, col_h2o, tau_rayleigh):
        """Bilinear interpolation of the Rayleigh scattering coefficients.

        The coefficients are scaled by the total (dry and moist) air column.
        """
        col_air = col_dry + col_h2o
        cols, lays = _column_layer_grid(interp)

        for ibnd, (start, stop) in enumerate(self.tables.band_lims_gpt):
            iflav = self.band_flavor[interp.itropo, ibnd]

            k = 0.
            for itemp in range(2):
                jtemp = interp.jtemp + itemp
                jeta = interp.jeta[itemp, iflav, cols, lays]
                for ieta in range(2):
                    weight = interp.fminor[ieta, itemp, iflav, cols, lays]
                    k = k + weight[..., None] * self.krayl[
                        interp.itropo, jtemp, jeta + ieta, start:stop]

            tau_rayleigh[start:stop] = (k * col_air[..., None]).transpose(
                2, 1, 0)

        return tau_rayleigh


def _column_layer_grid(interp):
    """Return broadcastable column and layer indices."""
    return (np.arange(interp.ncol)[:, np.newaxis],
            np.arange(interp.nlay)[np.newaxis, :])


def interpolate_by_flavor(table, interp, iflav, start, stop,
                          scale_by_col_mix=False):
    """Trilinear interpolation of a table for a range of g-points.

    Parameters:
        table (ndarray): Coefficients ``(ntemp, npres + 1, neta, ngpt)``.
        interp (InterpolationState): Result of the grid locator.
        iflav (ndarray): Flavor of every layer ``(ncol, nlay)``.
        start, stop (int): G-point range.
        scale_by_col_mix (bool): Scale each temperature corner with the
            combined column amount of the key species.

    Returns:
        ndarray: Interpolated values ``(ncol, nlay, stop - start)``.
    """
    cols, lays = _column_layer_grid(interp)

    result = 0.
    for itemp in range(2):
        jtemp = interp.jtemp + itemp
        jeta = interp.jeta[itemp, iflav, cols, lays]

        if scale_by_col_mix:
            col_mix = interp.col_mix[itemp, iflav, cols, lays]

        for ipress in range(2):
            # The upper atmosphere is shifted by one pressure level.
            jpress = interp.jpress + interp.itropo + ipress

            for ieta in range(2):
                weight = interp.fmajor[itemp, ipress, ieta, iflav, cols, lays]
                if scale_by_col_mix:
                    weight = weight * col_mix

                result = result + weight[..., None] * table[
                    jtemp, jpress, jeta + ieta, start:stop]

    return result


def combine_and_reorder(tau, tau_rayleigh, has_rayleigh, optical_props):
    """Fill optical properties from absorption and Rayleigh optical depth.

    For two-stream properties the single scattering albedo is the ratio of
    Rayleigh and total optical depth, and the asymmetry parameter is zero.
    Single-scalar properties only receive the absorption optical depth.

    Parameters:
        tau (ndarray): Absorption optical depth ``(ngpt, nlay, ncol)``.
        tau_rayleigh (ndarray): Rayleigh optical depth
            ``(ngpt, nlay, ncol)``.
        has_rayleigh (bool): Whether ``tau_rayleigh`` holds valid data.
        optical_props (OpticalProps): Output in ``(ncol, nlay, ngpt)``.
    """
    tau_out = optical_props['tau']

    if not isinstance(optical_props, OpticalProps2str):
        tau_out[...] = tau.transpose(2, 1, 0)
        return optical_props

    ssa = optical_props['ssa']
    ssa[...] = 0.
    optical_props['g'][...] = 0.

    if has_rayleigh:
        tau_rayleigh = tau_rayleigh.transpose(2, 1, 0)
        np.add(tau.transpose(2, 1, 0), tau_rayleigh, out=tau_out)
        np.divide(tau_rayleigh, tau_out, out=ssa,
                  where=tau_out > 2 * np.finfo(tau_out.dtype).tiny)
    else:
        tau_out[...] = tau.transpose(2, 1, 0)

    return optical_props
