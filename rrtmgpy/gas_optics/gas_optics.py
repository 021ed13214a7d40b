# -*- coding: utf-8 -*-
"""Gas optics based on a correlated-k distribution (RRTMGP tables).

**Example**

Compute the longwave optical properties and Planck sources of a batch of
columns:

    >>> tables = rrtmgpy.netcdf.read_coefficients('rrtmgp-gas-lw-g128.nc')
    >>> gas_optics = GasOpticsRRTMGP(['h2o', 'co2', 'o3'], tables)
    >>> optical_props = gas_optics.create_optical_props(ncol, nlay)
    >>> sources = gas_optics.create_sources(ncol, nlay)
    >>> gas_optics.gas_optics_lw(play, plev, tlay, tsfc, gas_concs,
    ...                          optical_props, sources)

"""
import logging

import numpy as np

from rrtmgpy import constants
from rrtmgpy.atmosphere import (get_col_dry, interpolate_level_temperature)
from rrtmgpy.gas_optics.absorption import (
    AbsorptionAssembler,
    combine_and_reorder,
    resolve_minor_absorbers,
)
from rrtmgpy.gas_optics.interpolation import (InterpolationState, locate)
from rrtmgpy.gas_optics.planck import compute_planck_source
from rrtmgpy.optical_props import (
    OpticalProps1scl,
    OpticalProps2str,
    SourceFuncLW,
)
from rrtmgpy.utils import (
    broadcast_columns,
    check_array_dtype,
    check_array_shape,
    is_top_at_1,
)
from rrtmgpy.workarrays import WorkArrays


__all__ = [
    'GasOpticsRRTMGP',
]

logger = logging.getLogger(__name__)

_INTERPOLATION_FIELDS = (
    'jtemp', 'ftemp', 'jpress', 'fpress', 'tropo', 'itropo', 'jeta',
    'col_mix', 'fminor', 'fmajor',
)


class GasOpticsRRTMGP:
    """Optical properties and sources of gases for a k-distribution.

    The tables are shared read-only by all calls. Intermediate results of
    a call are stored in a :class:`rrtmgpy.workarrays.WorkArrays` arena
    which can be passed in to avoid repeated allocations.
    """
    def __init__(self, available_gases, tables, dtype=np.float64,
                 allow_missing_minor=False):
        """
        Parameters:
            available_gases (iterable[str]): Names of the gases that will
                be provided in the gas concentrations.
            tables (ReferenceTables): Tabulated k-distribution.
            dtype (numpy.dtype): Floating point precision of all
                calculations (``float32`` or ``float64``).
            allow_missing_minor (bool): Drop minor absorbers whose gas is
                not available instead of raising an error.

        Raises:
            TypeError: If ``dtype`` is not a floating point type.
            ValueError: If a key species or minor gas is not available.
        """
        self.dtype = np.dtype(dtype)
        if not np.issubdtype(self.dtype, np.floating):
            raise TypeError(
                f'Precision has to be a floating point type, not {dtype}.')

        self.available_gases = tuple(name.lower() for name in available_gases)
        self.tables = tables.astype(self.dtype)

        self._check_key_species()
        self.minor_absorbers = resolve_minor_absorbers(
            self.tables, self.available_gases, allow_missing_minor)
        self.assembler = AbsorptionAssembler(self.tables,
                                             self.minor_absorbers)

        self.idx_h2o = self.tables.gas_index('h2o')

        self.solar_source = None
        if self.source_is_external:
            self.set_solar_variability(
                mg_index=(self.tables.mg_default
                          if self.tables.mg_default is not None
                          else constants.solar_mg_index_offset),
                sb_index=(self.tables.sb_default
                          if self.tables.sb_default is not None
                          else constants.solar_sb_index_offset),
            )

        logger.debug(
            f'Initialised gas optics ({self.dtype}) with '
            f'{len(self.minor_absorbers)} minor absorbers.'
        )

    def _check_key_species(self):
        missing = set()
        for igas in np.unique(self.tables.key_species):
            if igas == 0:
                continue
            name = self.tables.gas_names[igas - 1]
            if name not in self.available_gases:
                missing.add(name)

        if missing:
            raise ValueError(
                'Key species required by the tables are not available: '
                + ', '.join(sorted(missing))
            )

    @property
    def gas_names(self):
        return self.tables.gas_names

    @property
    def ngas(self):
        return self.tables.ngas

    @property
    def nflav(self):
        return self.tables.nflav

    @property
    def ngpt(self):
        return self.tables.ngpt

    @property
    def nband(self):
        return self.tables.nband

    @property
    def band_lims_gpt(self):
        """Zero-based, half-open g-point range of every band."""
        return self.tables.band_lims_gpt

    @property
    def band_lims_wavenumber(self):
        return self.tables.band_lims_wavenum

    @property
    def press_ref_min(self):
        return self.tables.press_ref.min()

    @property
    def press_ref_max(self):
        return self.tables.press_ref.max()

    @property
    def temp_min(self):
        return self.tables.temp_ref_min

    @property
    def temp_max(self):
        return self.tables.temp_ref_max

    @property
    def source_is_internal(self):
        return self.tables.source_is_internal

    @property
    def source_is_external(self):
        return self.tables.source_is_external

    @property
    def has_rayleigh(self):
        return self.tables.has_rayleigh

    @staticmethod
    def get_col_dry(vmr_h2o, plev):
        """Dry air column amount [molecules / cm**2].

        See also:
            :func:`rrtmgpy.atmosphere.get_col_dry`
        """
        return get_col_dry(vmr_h2o, plev)

    def create_optical_props(self, ncol, nlay):
        """Allocate optical properties matching the k-distribution.

        Longwave tables get absorption-only properties, shortwave tables
        get two-stream properties.
        """
        if self.source_is_internal:
            props = OpticalProps1scl(self.band_lims_gpt,
                                     self.band_lims_wavenumber, name='gas')
        else:
            props = OpticalProps2str(self.band_lims_gpt,
                                     self.band_lims_wavenumber, name='gas')

        return props.alloc(ncol, nlay, dtype=self.dtype)

    def create_sources(self, ncol, nlay):
        """Allocate longwave sources matching the k-distribution."""
        sources = SourceFuncLW(self.band_lims_gpt, self.band_lims_wavenumber,
                               name='planck')

        return sources.alloc(ncol, nlay, dtype=self.dtype)

    def create_work_arrays(self, ncol, nlay, work=None):
        """Allocate the scratch arrays needed by the gas optics.

        Parameters:
            ncol (int): Maximum number of columns per call.
            nlay (int): Number of layers.
            work (WorkArrays): Existing arena to extend.

        Returns:
            WorkArrays: Arena holding all gas optics arrays.
        """
        if work is None:
            work = WorkArrays(ncol, dtype=self.dtype)

        ngpt, nflav = self.ngpt, self.nflav

        work.allocate('col_gas', (self.ngas + 1, ncol, nlay), col_axis=1)

        interp = InterpolationState.allocate(ncol, nlay, nflav, self.dtype)
        for name in _INTERPOLATION_FIELDS:
            array = getattr(interp, name)
            work.allocate(name, array.shape, col_axis=array.ndim - 2,
                          dtype=array.dtype)

        work.allocate('tau_abs', (ngpt, nlay, ncol), col_axis=2)
        if self.has_rayleigh:
            work.allocate('tau_rayleigh', (ngpt, nlay, ncol), col_axis=2)
        if self.source_is_internal:
            work.allocate('pfrac', (ncol, nlay, ngpt))

        return work

    def _get_work_arrays(self, work, ncol, nlay):
        """Return an arena of matching size, allocating one if needed."""
        if work is None:
            return self.create_work_arrays(ncol, nlay)

        if 'col_gas' not in work:
            raise ValueError('Work arrays do not hold gas optics arrays.')

        if work['col_gas'].shape[2] != nlay:
            raise ValueError(
                f'Work arrays are sized for {work["col_gas"].shape[2]} '
                f'layers but {nlay} layers are given.'
            )

        return work.view(ncol)

    def _check_state(self, play, plev, tlay):
        ncol, nlay = np.shape(play)
        check_array_dtype(play, self.dtype, 'play')
        check_array_dtype(tlay, self.dtype, 'tlay')
        check_array_shape(plev, (ncol, nlay + 1), 'plev')
        check_array_shape(tlay, (ncol, nlay), 'tlay')

        return ncol, nlay

    def compute_col_gas(self, play, plev, gas_concs, col_dry=None,
                        out=None):
        """Compute the column amounts of dry air and all gases.

        Gases that are not set in ``gas_concs`` have zero column amount.

        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            col_dry (ndarray): Dry air column amount. Computed from the
                water vapor concentration if not given.
            out (ndarray): Output ``(ngas + 1, ncol, nlay)``.

        Returns:
            ndarray: Column amounts with dry air at index 0
            [molecules / cm**2].
        """
        ncol, nlay = np.shape(play)
        if out is None:
            out = np.empty((self.ngas + 1, ncol, nlay), dtype=self.dtype)

        if col_dry is None:
            vmr_h2o = broadcast_columns(
                gas_concs.get_vmr('h2o', default=0.), (ncol, nlay))
            col_dry = get_col_dry(vmr_h2o, plev)

        out[0] = col_dry
        for igas, name in enumerate(self.gas_names, start=1):
            vmr = gas_concs.get_vmr(name, default=0.)
            try:
                vmr = broadcast_columns(vmr, (ncol, nlay))
            except ValueError:
                raise ValueError(
                    f'Volume mixing ratio of "{name}" with shape '
                    f'{np.shape(vmr)} does not match ({ncol}, {nlay}).'
                )
            np.multiply(vmr, out[0], out=out[igas])

        return out

    def _col_h2o(self, col_gas):
        if self.idx_h2o == 0:
            return np.zeros_like(col_gas[0])
        return col_gas[self.idx_h2o]

    def locate(self, play, plev, tlay, gas_concs, col_dry=None, work=None):
        """Compute the indices and weights on the reference grid.

        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            col_dry (ndarray): Dry air column amount.
            work (WorkArrays): Scratch arena.

        Returns:
            InterpolationState: Indices and weights.
        """
        ncol, nlay = self._check_state(play, plev, tlay)
        work = self._get_work_arrays(work, ncol, nlay)

        col_gas = self.compute_col_gas(play, plev, gas_concs, col_dry,
                                       out=work['col_gas'])

        return locate(self.tables, play, tlay, col_gas,
                      out=self._interpolation_state(work))

    @staticmethod
    def _interpolation_state(work):
        return InterpolationState(
            **{name: work[name] for name in _INTERPOLATION_FIELDS})

    def compute_gas_taus(self, play, plev, tlay, gas_concs, col_dry=None,
                         work=None):
        """Compute absorption and Rayleigh optical depth.

        Returns:
            tuple: Absorption optical depth, Rayleigh optical depth
            (``None`` without Rayleigh tables), both ``(ngpt, nlay, ncol)``,
            and the :class:`InterpolationState`.
        """
        ncol, nlay = self._check_state(play, plev, tlay)
        work = self._get_work_arrays(work, ncol, nlay)

        interp = self.locate(play, plev, tlay, gas_concs, col_dry, work)
        col_gas = work['col_gas']

        tau = work['tau_abs']
        tau_rayleigh = work['tau_rayleigh'] if self.has_rayleigh else None
        self.assembler.compute_gas_taus(
            interp, col_gas, self._col_h2o(col_gas), play, tlay,
            tau, tau_rayleigh,
        )

        return tau, tau_rayleigh, interp

    def check_optical_props(self, optical_props, ncol, nlay):
        if optical_props.ngpt != self.ngpt:
            raise ValueError(
                f'Optical properties have {optical_props.ngpt} g-points '
                f'but the gas optics has {self.ngpt}.'
            )
        sizes = {'col': ncol, 'lay': nlay, 'gpt': self.ngpt}
        for name, (dims, data) in optical_props.data_vars.items():
            check_array_shape(data, tuple(sizes[d] for d in dims), name)
            check_array_dtype(data, self.dtype, name)

    def gas_optics_lw(self, play, plev, tlay, tsfc, gas_concs, optical_props,
                      sources, col_dry=None, tlev=None, work=None):
        """Compute longwave optical properties and Planck sources.

        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            tsfc (ndarray): Surface temperature ``(ncol,)`` [K].
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            optical_props (OpticalProps): Output optical properties.
            sources (SourceFuncLW): Output Planck sources.
            col_dry (ndarray): Dry air column amount.
            tlev (ndarray): Interface temperature ``(ncol, nlay + 1)`` [K].
                Interpolated from ``tlay`` if not given.
            work (WorkArrays): Scratch arena.

        Returns:
            OpticalProps, SourceFuncLW
        """
        if not self.source_is_internal:
            raise ValueError(
                'Longwave gas optics needs tables with Planck sources.')

        ncol, nlay = self._check_state(play, plev, tlay)
        self.check_optical_props(optical_props, ncol, nlay)
        self.check_optical_props(sources, ncol, nlay)
        check_array_shape(tsfc, (ncol,), 'tsfc')

        work = self._get_work_arrays(work, ncol, nlay)
        tau, tau_rayleigh, interp = self.compute_gas_taus(
            play, plev, tlay, gas_concs, col_dry, work)
        combine_and_reorder(tau, tau_rayleigh, self.has_rayleigh,
                            optical_props)

        self.source(play, plev, tlay, tsfc, interp, sources, tlev=tlev,
                    work=work)

        return optical_props, sources

    def source(self, play, plev, tlay, tsfc, interp, sources, tlev=None,
               work=None):
        """Compute the Planck sources for a located atmospheric state.

        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            tsfc (ndarray): Surface temperature ``(ncol,)`` [K].
            interp (InterpolationState): Result of :meth:`locate`.
            sources (SourceFuncLW): Output Planck sources.
            tlev (ndarray): Interface temperature ``(ncol, nlay + 1)`` [K].
            work (WorkArrays): Scratch arena.

        Returns:
            SourceFuncLW
        """
        ncol, nlay = np.shape(play)
        if tlev is None:
            tlev = interpolate_level_temperature(play, plev, tlay)
        check_array_shape(tlev, (ncol, nlay + 1), 'tlev')

        pfrac = None if work is None else work.view(ncol)['pfrac']

        return compute_planck_source(
            self.tables, interp, tlay, tlev, tsfc, is_top_at_1(play),
            sources, pfrac=pfrac,
        )

    def gas_optics_sw(self, play, plev, tlay, gas_concs, optical_props,
                      toa_src, col_dry=None, work=None):
        """Compute shortwave optical properties and the solar source.

        Parameters:
            play (ndarray): Layer pressure ``(ncol, nlay)`` [Pa].
            plev (ndarray): Interface pressure ``(ncol, nlay + 1)`` [Pa].
            tlay (ndarray): Layer temperature ``(ncol, nlay)`` [K].
            gas_concs (GasConcentrations): Gas volume mixing ratios.
            optical_props (OpticalProps): Output optical properties.
            toa_src (ndarray): Output incoming solar flux at the top of
                the atmosphere ``(ncol, ngpt)`` [W / m**2].
            col_dry (ndarray): Dry air column amount.
            work (WorkArrays): Scratch arena.

        Returns:
            OpticalProps, ndarray
        """
        if not self.source_is_external:
            raise ValueError(
                'Shortwave gas optics needs tables with a solar source.')

        ncol, nlay = self._check_state(play, plev, tlay)
        self.check_optical_props(optical_props, ncol, nlay)
        check_array_shape(toa_src, (ncol, self.ngpt), 'toa_src')
        check_array_dtype(toa_src, self.dtype, 'toa_src')

        work = self._get_work_arrays(work, ncol, nlay)
        tau, tau_rayleigh, _ = self.compute_gas_taus(
            play, plev, tlay, gas_concs, col_dry, work)
        combine_and_reorder(tau, tau_rayleigh, self.has_rayleigh,
                            optical_props)

        toa_src[...] = self.solar_source

        return optical_props, toa_src

    def set_solar_variability(self, mg_index, sb_index, tsi=None):
        """Combine the solar source components for a given solar activity.

        Parameters:
            mg_index (float): Facular brightening index (NRLSSI2 Mg index).
            sb_index (float): Sunspot darkening index.
            tsi (float): Total solar irradiance the source is scaled to
                [W / m**2]. If ``None``, no scaling is applied.
        """
        if not self.source_is_external:
            raise ValueError('Tables do not have a solar source.')

        self.solar_source = (
            self.tables.solar_source_quiet
            + (mg_index - constants.solar_mg_index_offset)
            * self.tables.solar_source_facular
            + (sb_index - constants.solar_sb_index_offset)
            * self.tables.solar_source_sunspot
        )

        if tsi is not None:
            self.set_tsi(tsi)

        return self.solar_source

    def set_tsi(self, tsi):
        """Scale the solar source to a total solar irradiance [W / m**2]."""
        if tsi < 0:
            raise ValueError('Total solar irradiance has to be non-negative.')

        self.solar_source = self.solar_source * (tsi / self.get_tsi())

    def get_tsi(self):
        """Return the total solar irradiance [W / m**2]."""
        return self.solar_source.sum()
