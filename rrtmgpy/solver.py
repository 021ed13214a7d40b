# -*- coding: utf-8 -*-
"""Drivers computing broadband fluxes for many columns.

The columns are processed in blocks of fixed size so that the memory
footprint is independent of the problem size. Every block runs the gas
optics, adds optional external optical properties (e.g. clouds), solves the
radiative transfer, and reduces the g-point fluxes into the caller-owned
output container.

**Example**

    >>> gas_optics = rrtmgpy.netcdf.load_gas_optics(
    ...     'rrtmgp-gas-lw-g128.nc', ['h2o', 'co2', 'o3'])
    >>> solver = RadiationSolverLongwave(gas_optics)
    >>> output = solver.create_output(state.ncol, state.nlay)
    >>> solver.solve(state, sfc_emis=0.98, output=output)
    >>> output.fluxes['flux_net']

"""
import logging

import numpy as np

from rrtmgpy.backends import SerialBackend
from rrtmgpy.fluxes import (Fluxes, FluxesByBand)
from rrtmgpy.rte import (rte_lw, rte_sw)
from rrtmgpy.utils import (check_array_dtype, check_array_shape,
                           get_column_blocks)
from rrtmgpy.workarrays import WorkArrayPool


__all__ = [
    'RadiationOutput',
    'LongwaveOutput',
    'ShortwaveOutput',
    'RadiationSolver',
    'RadiationSolverLongwave',
    'RadiationSolverShortwave',
]

logger = logging.getLogger(__name__)


class RadiationOutput:
    """Container for the results of a radiation solver.

    Attributes:
        fluxes (Fluxes): Broadband (and optionally band-resolved) fluxes.
        optical_props (OpticalProps): Gas optical properties (optional).
        sources (SourceFuncLW): Planck sources (optional).
    """
    def __init__(self, fluxes, optical_props=None, sources=None):
        self.fluxes = fluxes
        self.optical_props = optical_props
        self.sources = sources

    def __repr__(self):
        names = ', '.join(name for name, _ in self.components())
        return f'<{self.__class__.__name__}({names}) object at {id(self)}>'

    @property
    def ncol(self):
        return self.fluxes.ncol

    def components(self):
        """Iterate over the name and container of all stored results."""
        for name in ('fluxes', 'optical_props', 'sources'):
            component = getattr(self, name)
            if component is not None:
                yield name, component

    def subset(self, start, stop):
        """Return an output container viewing a range of columns."""
        return type(self)(**{
            name: component.subset(start, stop)
            for name, component in self.components()
        })


class LongwaveOutput(RadiationOutput):
    pass


class ShortwaveOutput(RadiationOutput):
    def __init__(self, fluxes, optical_props=None, sources=None):
        if sources is not None:
            raise ValueError('Shortwave output does not store sources.')
        super().__init__(fluxes, optical_props=optical_props)


class RadiationSolver:
    """Common functionality of the longwave and shortwave drivers."""
    def __init__(self, gas_optics, n_col_block=1024, backend=None):
        """
        Parameters:
            gas_optics (GasOpticsRRTMGP): Gas optics engine.
            n_col_block (int): Maximum number of columns per block.
            backend (Backend): Execution backend.
                Defaults to :class:`rrtmgpy.backends.SerialBackend`.
        """
        if n_col_block < 1:
            raise ValueError(
                f'Block size has to be positive but is {n_col_block}.')

        self.gas_optics = gas_optics
        self.n_col_block = n_col_block
        self.backend = SerialBackend() if backend is None else backend

        self._pools = {}

    def __repr__(self):
        return (f'{self.__class__.__name__}(n_col_block={self.n_col_block}, '
                f'backend={self.backend!r})')

    @property
    def dtype(self):
        return self.gas_optics.dtype

    def create_work_arrays(self, ncol, nlay, jacobian=False):
        """Allocate all scratch arrays for one block of columns."""
        work = self.gas_optics.create_work_arrays(ncol, nlay)
        work.add_component(
            'optical_props', self.gas_optics.create_optical_props(ncol, nlay))

        shape = (ncol, nlay + 1, self.gas_optics.ngpt)
        work.allocate('gpt_flux_up', shape)
        work.allocate('gpt_flux_dn', shape)

        return work

    def _get_pool(self, nlay, **kwargs):
        """Return the arena pool for a given number of layers.

        Arenas always hold a full block, smaller blocks use views on them.
        """
        key = (self.n_col_block, nlay) + tuple(sorted(kwargs.items()))

        if key not in self._pools:
            def factory():
                return self.create_work_arrays(self.n_col_block, nlay,
                                               **kwargs)
            self._pools[key] = WorkArrayPool(factory)

        return self._pools[key]

    def _check_state(self, state):
        if state.dtype != self.dtype:
            raise TypeError(
                f'Atmospheric state is of type {state.dtype} but the gas '
                f'optics compute in {self.dtype}.'
            )

    def check_output(self, output, ncol, nlay):
        """Check that an output container fits a given problem.

        Raises:
            ValueError: If the size of any array does not fit.
            TypeError: If the precision of any array differs.
        """
        output.fluxes.check(ncol, nlay + 1, self.dtype)

        if 'band' in output.fluxes.coords:
            nband = output.fluxes.coords['band'].size
            if nband != self.gas_optics.nband:
                raise ValueError(
                    f'Output holds {nband} bands but the gas optics '
                    f'has {self.gas_optics.nband}.'
                )

        for name, component in output.components():
            if name != 'fluxes':
                self.gas_optics.check_optical_props(component, ncol, nlay)

    @staticmethod
    def _check_external(external_optical_props, ncol, nlay):
        if external_optical_props is None:
            return

        if (external_optical_props.ncol != ncol
                or external_optical_props.nlay != nlay):
            raise ValueError(
                f'External optical properties have shape '
                f'({external_optical_props.ncol}, '
                f'{external_optical_props.nlay}) but ({ncol}, {nlay}) '
                f'is expected.'
            )

    def _run(self, task, ncol, nlay, **kwargs):
        blocks = get_column_blocks(ncol, self.n_col_block)
        logger.debug(
            f'Solving {ncol} columns in {len(blocks)} blocks using '
            f'{self.backend!r}.'
        )
        self.backend.run(task, blocks, self._get_pool(nlay, **kwargs))

    @staticmethod
    def _column_slice(value, start, stop):
        """Slice per-column input, pass on values shared by all columns."""
        if np.ndim(value) == 2:
            return value[start:stop]
        return value

    @staticmethod
    def _store_optical_props(optical_props, output):
        if output.optical_props is not None:
            for name in output.optical_props.data_vars:
                output.optical_props[name][...] = optical_props[name]


class RadiationSolverLongwave(RadiationSolver):
    """Longwave fluxes of emitting and absorbing (non-scattering) gases."""
    def __init__(self, gas_optics, n_col_block=1024, n_gauss_angles=1,
                 backend=None):
        """
        Parameters:
            gas_optics (GasOpticsRRTMGP): Gas optics engine with Planck
                sources.
            n_col_block (int): Maximum number of columns per block.
            n_gauss_angles (int): Number of quadrature angles (1 to 4).
            backend (Backend): Execution backend.
        """
        if not gas_optics.source_is_internal:
            raise ValueError('Longwave solver needs a longwave k-distribution.')

        if not 1 <= n_gauss_angles <= 4:
            raise ValueError(
                f'Number of Gaussian quadrature angles has to be between 1 '
                f'and 4, not {n_gauss_angles}.'
            )

        super().__init__(gas_optics, n_col_block=n_col_block, backend=backend)
        self.n_gauss_angles = n_gauss_angles

    def create_work_arrays(self, ncol, nlay, jacobian=False):
        work = super().create_work_arrays(ncol, nlay)
        work.add_component('sources',
                           self.gas_optics.create_sources(ncol, nlay))
        if jacobian:
            work.allocate('gpt_flux_up_jac',
                          (ncol, nlay + 1, self.gas_optics.ngpt))

        return work

    def create_output(self, ncol, nlay, by_band=False, optical_props=False,
                      sources=False, jacobian=False):
        """Allocate an output container.

        Parameters:
            ncol (int): Number of columns.
            nlay (int): Number of layers.
            by_band (bool): Store band-resolved fluxes.
            optical_props (bool): Store the gas optical properties.
            sources (bool): Store the Planck sources.
            jacobian (bool): Store the derivative of the upward flux with
                respect to the surface temperature.

        Returns:
            LongwaveOutput
        """
        if by_band:
            fluxes = FluxesByBand(ncol, nlay + 1, self.gas_optics.band_lims_gpt,
                                  dtype=self.dtype, jacobian=jacobian)
        else:
            fluxes = Fluxes(ncol, nlay + 1, dtype=self.dtype,
                            jacobian=jacobian)

        return LongwaveOutput(
            fluxes,
            optical_props=(self.gas_optics.create_optical_props(ncol, nlay)
                           if optical_props else None),
            sources=(self.gas_optics.create_sources(ncol, nlay)
                     if sources else None),
        )

    def solve(self, state, sfc_emis, output, inc_flux=None,
              external_optical_props=None):
        """Compute longwave fluxes for all columns.

        Parameters:
            state (AtmosphericState): Atmospheric state.
            sfc_emis (float or ndarray): Surface emissivity, scalar,
                per band ``(nband,)``, or per column ``(ncol, nband)``
                (or g-points instead of bands).
            output (LongwaveOutput): Output container, e.g. created by
                :meth:`create_output`.
            inc_flux (ndarray): Incoming flux at the top of the
                atmosphere ``(ncol, ngpt)`` [W / m**2].
            external_optical_props (OpticalProps): Optical properties
                added to those of the gases (e.g. clouds).

        Returns:
            LongwaveOutput: The updated output container.
        """
        ncol, nlay = state.ncol, state.nlay
        self._check_state(state)
        self.check_output(output, ncol, nlay)
        self._check_external(external_optical_props, ncol, nlay)
        if inc_flux is not None:
            check_array_shape(inc_flux, (ncol, self.gas_optics.ngpt),
                              'inc_flux')

        jacobian = output.fluxes.has_jacobian
        top_at_1 = state.top_at_1
        output.fluxes.top_at_1 = top_at_1
        sfc_emis = np.asarray(sfc_emis, dtype=self.dtype)

        def task(start, stop, work):
            block = state.subset(start, stop)
            block_output = output.subset(start, stop)
            optical_props = work['optical_props']
            sources = work['sources']

            self.gas_optics.gas_optics_lw(
                block['play'], block['plev'], block['tlay'], block['tsfc'],
                block.gas_concs, optical_props, sources,
                col_dry=block['col_dry'], tlev=block['tlev'], work=work,
            )
            self._store_optical_props(optical_props, block_output)
            if block_output.sources is not None:
                for name in block_output.sources.data_vars:
                    block_output.sources[name][...] = sources[name]

            if external_optical_props is not None:
                optical_props.increment(
                    external_optical_props.subset(start, stop))

            gpt_flux_up_jac = work['gpt_flux_up_jac'] if jacobian else None
            rte_lw(
                optical_props, top_at_1, sources,
                self._column_slice(sfc_emis, start, stop),
                work['gpt_flux_up'], work['gpt_flux_dn'],
                inc_flux=None if inc_flux is None else inc_flux[start:stop],
                n_gauss_angles=self.n_gauss_angles,
                gpt_flux_up_jac=gpt_flux_up_jac,
            )

            block_output.fluxes.reduce(
                work['gpt_flux_up'], work['gpt_flux_dn'], optical_props,
                top_at_1, gpt_flux_up_jac=gpt_flux_up_jac,
            )

        self._run(task, ncol, nlay, jacobian=jacobian)

        return output


class RadiationSolverShortwave(RadiationSolver):
    """Shortwave fluxes including Rayleigh scattering."""
    def __init__(self, gas_optics, n_col_block=1024, backend=None):
        """
        Parameters:
            gas_optics (GasOpticsRRTMGP): Gas optics engine with a solar
                source.
            n_col_block (int): Maximum number of columns per block.
            backend (Backend): Execution backend.
        """
        if not gas_optics.source_is_external:
            raise ValueError(
                'Shortwave solver needs a shortwave k-distribution.')

        super().__init__(gas_optics, n_col_block=n_col_block, backend=backend)

    def create_work_arrays(self, ncol, nlay, jacobian=False):
        work = super().create_work_arrays(ncol, nlay)
        ngpt = self.gas_optics.ngpt
        work.allocate('gpt_flux_dir', (ncol, nlay + 1, ngpt))
        work.allocate('toa_src', (ncol, ngpt))

        return work

    def create_output(self, ncol, nlay, by_band=False, optical_props=False):
        """Allocate an output container.

        Parameters:
            ncol (int): Number of columns.
            nlay (int): Number of layers.
            by_band (bool): Store band-resolved fluxes.
            optical_props (bool): Store the gas optical properties.

        Returns:
            ShortwaveOutput
        """
        if by_band:
            fluxes = FluxesByBand(ncol, nlay + 1, self.gas_optics.band_lims_gpt,
                                  dtype=self.dtype, direct=True)
        else:
            fluxes = Fluxes(ncol, nlay + 1, dtype=self.dtype, direct=True)

        return ShortwaveOutput(
            fluxes,
            optical_props=(self.gas_optics.create_optical_props(ncol, nlay)
                           if optical_props else None),
        )

    def solve(self, state, mu0, sfc_alb_dir, sfc_alb_dif, output,
              tsi_scaling=None, inc_flux_dif=None,
              external_optical_props=None):
        """Compute shortwave fluxes for all columns.

        Parameters:
            state (AtmosphericState): Atmospheric state.
            mu0 (float or ndarray): Cosine of the solar zenith angle
                ``(ncol,)``. Columns with ``mu0 <= 0`` get zero flux.
            sfc_alb_dir (float or ndarray): Surface albedo for direct
                radiation, scalar, per band, or per column and band.
            sfc_alb_dif (float or ndarray): Surface albedo for diffuse
                radiation.
            output (ShortwaveOutput): Output container, e.g. created by
                :meth:`create_output`.
            tsi_scaling (float or ndarray): Factor applied to the solar
                source, scalar or ``(ncol,)``.
            inc_flux_dif (ndarray): Diffuse incoming flux
                ``(ncol, ngpt)`` [W / m**2].
            external_optical_props (OpticalProps): Optical properties
                added to those of the gases (e.g. clouds).

        Returns:
            ShortwaveOutput: The updated output container.
        """
        ncol, nlay = state.ncol, state.nlay
        self._check_state(state)
        self.check_output(output, ncol, nlay)
        self._check_external(external_optical_props, ncol, nlay)

        mu0 = np.array(np.broadcast_to(mu0, (ncol,)), dtype=self.dtype)
        if tsi_scaling is not None:
            tsi_scaling = np.array(np.broadcast_to(tsi_scaling, (ncol,)),
                                   dtype=self.dtype)
        if inc_flux_dif is not None:
            check_array_shape(inc_flux_dif, (ncol, self.gas_optics.ngpt),
                              'inc_flux_dif')
            check_array_dtype(inc_flux_dif, self.dtype, 'inc_flux_dif')

        sfc_alb_dir = np.asarray(sfc_alb_dir, dtype=self.dtype)
        sfc_alb_dif = np.asarray(sfc_alb_dif, dtype=self.dtype)
        top_at_1 = state.top_at_1
        output.fluxes.top_at_1 = top_at_1

        def task(start, stop, work):
            block = state.subset(start, stop)
            block_output = output.subset(start, stop)
            optical_props = work['optical_props']
            toa_src = work['toa_src']

            self.gas_optics.gas_optics_sw(
                block['play'], block['plev'], block['tlay'], block.gas_concs,
                optical_props, toa_src, col_dry=block['col_dry'], work=work,
            )
            if tsi_scaling is not None:
                toa_src *= tsi_scaling[start:stop, np.newaxis]

            self._store_optical_props(optical_props, block_output)

            if external_optical_props is not None:
                optical_props.increment(
                    external_optical_props.subset(start, stop))

            rte_sw(
                optical_props, top_at_1, mu0[start:stop], toa_src,
                self._column_slice(sfc_alb_dir, start, stop),
                self._column_slice(sfc_alb_dif, start, stop),
                work['gpt_flux_up'], work['gpt_flux_dn'],
                work['gpt_flux_dir'],
                inc_flux_dif=(None if inc_flux_dif is None
                              else inc_flux_dif[start:stop]),
            )

            block_output.fluxes.reduce(
                work['gpt_flux_up'], work['gpt_flux_dn'], optical_props,
                top_at_1, gpt_flux_dn_dir=work['gpt_flux_dir'],
            )

        self._run(task, ncol, nlay)

        return output
