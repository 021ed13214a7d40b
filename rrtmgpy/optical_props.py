# -*- coding: utf-8 -*-
"""Containers for optical properties and longwave sources.

All arrays are stored column first: ``(ncol, nlay, ngpt)``. The spectral
discretisation is described by the g-point limits of every band. Optical
properties defined per band (e.g. for clouds) use one g-point per band and
are expanded to the g-points of the gases when they are combined.

**Example**

Add the optical properties of a cloud layer (defined per band) to the
gaseous optical properties:

    >>> gas_props = OpticalProps2str(band_lims_gpt)
    >>> gas_props.alloc(ncol, nlay)
    >>> cloud_props = OpticalProps2str.by_band(nband)
    >>> cloud_props.alloc(ncol, nlay)
    >>> gas_props.increment(cloud_props)

"""
import logging

import numpy as np

from rrtmgpy.component import Component


__all__ = [
    'OpticalProps',
    'OpticalProps1scl',
    'OpticalProps2str',
    'SourceFuncLW',
]

logger = logging.getLogger(__name__)


class OpticalProps(Component):
    """Spectral discretisation shared by optical properties and sources."""
    def __init__(self, band_lims_gpt, band_lims_wavenum=None, name=''):
        """
        Parameters:
            band_lims_gpt (ndarray): First and (exclusive) last g-point of
                every band ``(nband, 2)``.
            band_lims_wavenum (ndarray): Wavenumber limits of every band
                ``(nband, 2)`` [cm^-1].
            name (str): Descriptive name.
        """
        self._band_lims_gpt = np.asarray(band_lims_gpt, dtype=np.int32)
        if band_lims_wavenum is None:
            self._band_lims_wavenum = None
        else:
            self._band_lims_wavenum = np.asarray(band_lims_wavenum)

        band_of_gpt = np.empty(self.ngpt, dtype=np.int32)
        for ibnd, (start, stop) in enumerate(self._band_lims_gpt):
            band_of_gpt[start:stop] = ibnd
        self._band_of_gpt = band_of_gpt

        self.name = name

    @classmethod
    def by_band(cls, nband, band_lims_wavenum=None, name=''):
        """Create an instance with one g-point per band."""
        band_lims_gpt = np.stack([np.arange(nband), np.arange(1, nband + 1)],
                                 axis=1)

        return cls(band_lims_gpt, band_lims_wavenum, name=name)

    @property
    def band_lims_gpt(self):
        return self._band_lims_gpt

    @property
    def band_lims_wavenum(self):
        return self._band_lims_wavenum

    @property
    def band_of_gpt(self):
        """Band index of every g-point ``(ngpt,)``."""
        return self._band_of_gpt

    @property
    def nband(self):
        return self._band_lims_gpt.shape[0]

    @property
    def ngpt(self):
        return int(self._band_lims_gpt[-1, 1])

    @property
    def is_by_band(self):
        """``True`` if every band consists of exactly one g-point."""
        return self.ngpt == self.nband

    def expand_surface_property(self, values, ncol, name='surface'):
        """Broadcast a spectral surface property to ``(ncol, ngpt)``.

        Parameters:
            values (float or ndarray): Scalar, spectrum or field given per
                band ``(.., nband)`` or per g-point ``(..., ngpt)``.
            ncol (int): Number of columns.
            name (str): Variable name used in error messages.

        Returns:
            ndarray: Read-only view ``(ncol, ngpt)``.
        """
        values = np.asarray(values, dtype=self.dtype)
        if values.ndim > 0 and values.shape[-1] == self.nband:
            values = values[..., self.band_of_gpt]

        try:
            return np.broadcast_to(values, (ncol, self.ngpt))
        except ValueError:
            raise ValueError(
                f'Array "{name}" with shape {values.shape} can not be '
                f'broadcasted to {(ncol, self.ngpt)}.'
            )

    def _create_coords(self, ncol, nlay):
        self.coords = {
            'col': np.arange(ncol),
            'lay': np.arange(nlay),
            'gpt': np.arange(self.ngpt),
        }

    @property
    def ncol(self):
        return self.coords['col'].size

    @property
    def nlay(self):
        return self.coords['lay'].size

    @property
    def dtype(self):
        return self['tau'].dtype


class OpticalProps1scl(OpticalProps):
    """Absorption optical depth only (no scattering)."""
    def alloc(self, ncol, nlay, dtype=np.float64):
        """Allocate the optical depth ``(ncol, nlay, ngpt)``."""
        self.create_variable('tau', np.zeros((ncol, nlay, self.ngpt), dtype))
        self._create_coords(ncol, nlay)

        return self

    def validate(self):
        """Check that all optical depths are non-negative.

        Raises:
            ValueError: If any value is invalid.
        """
        if np.any(self['tau'] < 0):
            raise ValueError('Optical depth has negative values.')

    def delta_scale(self, forward_fraction=None):
        """Delta scaling does not apply to absorption only."""
        return self

    def increment(self, other):
        """Add the optical properties of ``other`` to this instance.

        Only the absorption part of two-stream properties is added.

        Parameters:
            other (OpticalProps1scl or OpticalProps2str): Optical
                properties defined on the same g-points or per band.
        """
        tau_other = _expand_to_gpt(self, other, other['tau'])

        if isinstance(other, OpticalProps2str):
            ssa_other = _expand_to_gpt(self, other, other['ssa'])
            self['tau'] += tau_other * (1. - ssa_other)
        else:
            self['tau'] += tau_other

        return self


class OpticalProps2str(OpticalProps):
    """Optical depth, single scattering albedo, and asymmetry parameter."""
    def alloc(self, ncol, nlay, dtype=np.float64):
        """Allocate optical depth, single scattering albedo, and asymmetry
        parameter ``(ncol, nlay, ngpt)``."""
        shape = (ncol, nlay, self.ngpt)
        self.create_variable('tau', np.zeros(shape, dtype))
        self.create_variable('ssa', np.zeros(shape, dtype))
        self.create_variable('g', np.zeros(shape, dtype))
        self._create_coords(ncol, nlay)

        return self

    def validate(self):
        """Check optical depth, single scattering albedo, and asymmetry.

        Raises:
            ValueError: If any value is invalid.
        """
        if np.any(self['tau'] < 0):
            raise ValueError('Optical depth has negative values.')
        if np.any(self['ssa'] < 0) or np.any(self['ssa'] > 1):
            raise ValueError('Single scattering albedo is outside [0, 1].')
        if np.any(np.abs(self['g']) > 1):
            raise ValueError('Asymmetry parameter is outside [-1, 1].')

    def delta_scale(self, forward_fraction=None):
        r"""Apply the delta scaling to remove the forward scattering peak.

        Parameters:
            forward_fraction (ndarray): Fraction of the scattering into the
                forward peak. Defaults to :math:`g^2`.
        """
        tau, ssa, g = self['tau'], self['ssa'], self['g']
        eps = np.finfo(tau.dtype).eps

        f = g**2 if forward_fraction is None else forward_fraction
        if np.any(f < 0) or np.any(f > 1):
            raise ValueError('Forward fraction has to be within [0, 1].')

        wf = ssa * f
        tau *= 1. - wf
        ssa[...] = (ssa - wf) / np.maximum(eps, 1. - wf)
        g[...] = (g - f) / np.maximum(eps, 1. - f)

        return self

    def increment(self, other):
        """Add the optical properties of ``other`` to this instance.

        Scattering properties are combined weighted by the (scattering)
        optical depth.

        Parameters:
            other (OpticalProps1scl or OpticalProps2str): Optical
                properties defined on the same g-points or per band.
        """
        tau, ssa, g = self['tau'], self['ssa'], self['g']
        eps = np.finfo(tau.dtype).eps

        tau_other = _expand_to_gpt(self, other, other['tau'])
        tau12 = tau + tau_other

        if isinstance(other, OpticalProps2str):
            ssa_other = _expand_to_gpt(self, other, other['ssa'])
            g_other = _expand_to_gpt(self, other, other['g'])

            tauscat12 = tau * ssa + tau_other * ssa_other
            g[...] = ((tau * ssa * g + tau_other * ssa_other * g_other)
                      / np.maximum(eps, tauscat12))
            ssa[...] = tauscat12 / np.maximum(eps, tau12)
        else:
            ssa[...] = tau * ssa / np.maximum(eps, tau12)

        tau[...] = tau12

        return self


def _expand_to_gpt(target, source, values):
    """Map values of ``source`` onto the g-points of ``target``."""
    if source.ngpt == target.ngpt:
        return values

    if source.is_by_band and source.nband == target.nband:
        return values[..., target.band_of_gpt]

    raise ValueError(
        f'Optical properties with {source.ngpt} g-points and '
        f'{source.nband} bands can not be added to optical properties '
        f'with {target.ngpt} g-points and {target.nband} bands.'
    )


class SourceFuncLW(OpticalProps):
    """Planck sources of the layers, interfaces, and the surface.

    The level sources are stored per layer: ``lev_source_inc`` is the
    source at the interface with the larger index of a layer and
    ``lev_source_dec`` the one at the interface with the smaller index.
    """
    def alloc(self, ncol, nlay, dtype=np.float64):
        """Allocate all sources."""
        shape = (ncol, nlay, self.ngpt)
        self.create_variable('lay_source', np.zeros(shape, dtype))
        self.create_variable('lev_source_inc', np.zeros(shape, dtype))
        self.create_variable('lev_source_dec', np.zeros(shape, dtype))
        self.create_variable('sfc_source', np.zeros((ncol, self.ngpt), dtype))
        self.create_variable('sfc_source_jac',
                             np.zeros((ncol, self.ngpt), dtype))
        self._create_coords(ncol, nlay)

        return self

    @property
    def dtype(self):
        return self['lay_source'].dtype
