# -*- coding: utf-8 -*-
"""Reduction of spectrally resolved fluxes and radiative heating rates.

**Example**

Sum g-point fluxes into broadband fluxes and derive the heating rate:

    >>> fluxes = Fluxes(ncol, nlay + 1)
    >>> fluxes.reduce(gpt_flux_up, gpt_flux_dn, optical_props, top_at_1)
    >>> fluxes.heating_rate(plev)

"""
import logging

import numpy as np

from rrtmgpy import constants
from rrtmgpy.component import Component
from rrtmgpy.utils import (check_array_shape, check_array_dtype)


__all__ = [
    'fluxes2heating',
    'Fluxes',
    'FluxesByBand',
]

logger = logging.getLogger(__name__)


def fluxes2heating(net_fluxes, pressure, cp=None, method='diff'):
    r"""Calculate radiative heating from net fluxes

    .. math::
        Q_\mathrm{r} = \frac{g}{c_p} \frac{\mathrm{d}F}{\mathrm{d}p}

    Parameters:
        net_fluxes (ndarray): Net radiative flux (positive upward) with
            the vertical dimension last.
        pressure (ndarray): Pressure level.
        cp (float or ndarray): Specific heat capacity. If ``None`` use
            specific heat capacity of dry air.
        method (str): Method used to derive the radiative fluxes
            ("diff" or "gradient").

    Returns:
        ndarray: Radiative heating [K/day].
    """
    g = constants.earth_standard_gravity
    if cp is None:
        cp = constants.isobaric_mass_heat_capacity_dry_air

    if method == 'diff':
        dfdp = np.diff(net_fluxes, axis=-1) / np.diff(pressure, axis=-1)
    elif method == 'gradient':
        dfdp = np.gradient(net_fluxes, axis=-1) / np.gradient(pressure,
                                                              axis=-1)
    else:
        raise ValueError('Method has to be "diff" or "gradient".')

    heating = g / cp * dfdp

    return heating * constants.seconds_in_a_day  # K/s -> K/day


class Fluxes(Component):
    """Broadband fluxes at the layer interfaces."""
    def __init__(self, ncol, nlev, dtype=np.float64, direct=False,
                 jacobian=False):
        """
        Parameters:
            ncol (int): Number of columns.
            nlev (int): Number of interfaces (layers + 1).
            dtype (numpy.dtype): Floating point precision.
            direct (bool): Store the direct downward flux (shortwave).
            jacobian (bool): Store the derivative of the upward flux
                with respect to the surface temperature (longwave).
        """
        self.coords = {
            'col': np.arange(ncol),
            'lev': np.arange(nlev),
        }

        for name in self._broadband_variables(direct, jacobian):
            self.create_variable(name, np.zeros((ncol, nlev), dtype=dtype))

        self.top_at_1 = True

    @staticmethod
    def _broadband_variables(direct, jacobian):
        names = ['flux_up', 'flux_dn', 'flux_net']
        if direct:
            names.append('flux_dn_dir')
        if jacobian:
            names.append('flux_up_jac')
        return names

    @property
    def ncol(self):
        return self.coords['col'].size

    @property
    def nlev(self):
        return self.coords['lev'].size

    @property
    def dtype(self):
        return self['flux_up'].dtype

    @property
    def has_direct(self):
        return 'flux_dn_dir' in self

    @property
    def has_jacobian(self):
        return 'flux_up_jac' in self

    def check(self, ncol, nlev, dtype):
        """Check that the container fits a given problem.

        Raises:
            ValueError: If the number of columns or levels differs.
            TypeError: If the precision differs.
        """
        for name, (dims, data) in self.data_vars.items():
            shape = tuple(
                {'col': ncol, 'lev': nlev}.get(dim, data.shape[i])
                for i, dim in enumerate(dims)
            )
            check_array_shape(data, shape, name)
            check_array_dtype(data, dtype, name)

    def reduce(self, gpt_flux_up, gpt_flux_dn, optical_props, top_at_1,
               gpt_flux_dn_dir=None, gpt_flux_up_jac=None):
        """Sum fluxes over all g-points.

        Parameters:
            gpt_flux_up (ndarray): Upward flux ``(ncol, nlev, ngpt)``.
            gpt_flux_dn (ndarray): Downward flux ``(ncol, nlev, ngpt)``.
            optical_props (OpticalProps): Spectral discretisation.
            top_at_1 (bool): Vertical ordering.
            gpt_flux_dn_dir (ndarray): Direct downward flux.
            gpt_flux_up_jac (ndarray): Surface temperature derivative of
                the upward flux.
        """
        expected = (self.ncol, self.nlev, optical_props.ngpt)
        check_array_shape(gpt_flux_up, expected, 'gpt_flux_up')
        check_array_shape(gpt_flux_dn, expected, 'gpt_flux_dn')

        np.sum(gpt_flux_up, axis=-1, out=self['flux_up'])
        np.sum(gpt_flux_dn, axis=-1, out=self['flux_dn'])
        np.subtract(self['flux_up'], self['flux_dn'], out=self['flux_net'])

        if self.has_direct and gpt_flux_dn_dir is not None:
            np.sum(gpt_flux_dn_dir, axis=-1, out=self['flux_dn_dir'])

        if self.has_jacobian and gpt_flux_up_jac is not None:
            np.sum(gpt_flux_up_jac, axis=-1, out=self['flux_up_jac'])

        self.top_at_1 = bool(top_at_1)

        return self

    def heating_rate(self, plev, cp=None):
        """Return the radiative heating rate of every layer [K/day].

        Parameters:
            plev (ndarray): Pressure at the interfaces ``(ncol, nlev)``.
            cp (float): Specific heat capacity.

        Returns:
            ndarray: Heating rate ``(ncol, nlev - 1)``.
        """
        return fluxes2heating(self['flux_net'], plev, cp=cp)


class FluxesByBand(Fluxes):
    """Broadband and band-resolved fluxes."""
    def __init__(self, ncol, nlev, band_lims_gpt, dtype=np.float64,
                 direct=False, jacobian=False):
        """
        Parameters:
            ncol (int): Number of columns.
            nlev (int): Number of interfaces (layers + 1).
            band_lims_gpt (ndarray): First and (exclusive) last g-point of
                every band ``(nband, 2)``.
            dtype (numpy.dtype): Floating point precision.
            direct (bool): Store the direct downward flux (shortwave).
            jacobian (bool): Store the surface temperature derivative.
        """
        super().__init__(ncol, nlev, dtype=dtype, direct=direct,
                         jacobian=jacobian)

        self._band_start = np.asarray(band_lims_gpt)[:, 0]
        nband = self._band_start.size
        self.coords['band'] = np.arange(nband)

        names = ['bnd_flux_up', 'bnd_flux_dn', 'bnd_flux_net']
        if direct:
            names.append('bnd_flux_dn_dir')
        for name in names:
            self.create_variable(
                name, np.zeros((ncol, nlev, nband), dtype=dtype))

    def reduce(self, gpt_flux_up, gpt_flux_dn, optical_props, top_at_1,
               gpt_flux_dn_dir=None, gpt_flux_up_jac=None):
        """Sum fluxes over all g-points and within every band.

        See :meth:`Fluxes.reduce` for a description of the parameters.
        """
        super().reduce(gpt_flux_up, gpt_flux_dn, optical_props, top_at_1,
                       gpt_flux_dn_dir=gpt_flux_dn_dir,
                       gpt_flux_up_jac=gpt_flux_up_jac)

        if optical_props.nband != self._band_start.size:
            raise ValueError(
                f'Fluxes are stored for {self._band_start.size} bands but '
                f'the optical properties define {optical_props.nband}.'
            )

        start = optical_props.band_lims_gpt[:, 0]
        self['bnd_flux_up'][...] = np.add.reduceat(gpt_flux_up, start, axis=-1)
        self['bnd_flux_dn'][...] = np.add.reduceat(gpt_flux_dn, start, axis=-1)
        np.subtract(self['bnd_flux_up'], self['bnd_flux_dn'],
                    out=self['bnd_flux_net'])

        if 'bnd_flux_dn_dir' in self and gpt_flux_dn_dir is not None:
            self['bnd_flux_dn_dir'][...] = np.add.reduceat(
                gpt_flux_dn_dir, start, axis=-1)

        return self
