# -*- coding: utf-8 -*-
"""Tabulated absorption coefficients of a correlated-k distribution.

The tables are read once (see :func:`rrtmgpy.netcdf.read_coefficients`)
and are never modified afterwards. All index conventions are Python
conventions: g-point ranges are zero-based and half-open. Gases are
numbered starting at one, ``gas_names[k - 1]`` is gas ``k``; the index
zero refers to dry air (in ``vmr_ref`` and the column amounts) or marks an
unused key species (in ``key_species``).
"""
import copy
import logging
from collections import namedtuple

import numpy as np


__all__ = [
    'ReferenceTables',
    'MinorContribution',
    'create_flavor',
    'create_gpoint_flavor',
]

logger = logging.getLogger(__name__)


MinorContribution = namedtuple(
    'MinorContribution',
    [
        'gas',  # name of the minor gas
        'gpt_start',  # first g-point affected
        'gpt_stop',  # g-point after the last one affected
        'kminor_start',  # first column in the kminor table
        'scales_with_density',
        'scaling_gas',  # name of the scaling gas or None
        'scale_by_complement',
    ]
)
MinorContribution.__doc__ = """Minor gas absorption as listed in the tables.

The absorption of the minor gas ``gas`` adds to the g-points
``gpt_start`` to ``gpt_stop - 1``. The coefficients are stored in the
columns ``kminor_start`` to ``kminor_start + gpt_stop - gpt_start - 1``
of the minor absorption table of the respective regime.
"""


def _rewrite_key_species_pair(pair):
    """Replace an empty key species pair by the first pair of gases."""
    if pair[0] == 0 and pair[1] == 0:
        return (2, 2)
    return (int(pair[0]), int(pair[1]))


def create_flavor(key_species):
    """Create the list of unique key species pairs.

    Parameters:
        key_species (ndarray): Key species indices ``(nband, 2, 2)``
            (band, lower/upper atmosphere, pair).

    Returns:
        ndarray: Unique flavors ``(nflav, 2)`` in order of appearance.
    """
    flavors = []
    for pair in np.reshape(key_species, (-1, 2)):
        pair = _rewrite_key_species_pair(pair)
        if pair not in flavors:
            flavors.append(pair)

    return np.array(flavors, dtype=np.int32)


def create_gpoint_flavor(key_species, band_lims_gpt, flavor):
    """Map each g-point to its flavor in the lower and upper atmosphere.

    Parameters:
        key_species (ndarray): Key species indices ``(nband, 2, 2)``.
        band_lims_gpt (ndarray): G-point range of every band ``(nband, 2)``.
        flavor (ndarray): Unique flavors ``(nflav, 2)``.

    Returns:
        ndarray: Flavor index for each regime and g-point ``(2, ngpt)``.
    """
    lookup = {tuple(pair): i for i, pair in enumerate(flavor.tolist())}

    ngpt = band_lims_gpt[-1, 1]
    gpoint_flavor = np.zeros((2, ngpt), dtype=np.int32)
    for ibnd, (start, stop) in enumerate(band_lims_gpt):
        for iatm in range(2):
            pair = _rewrite_key_species_pair(key_species[ibnd, iatm])
            gpoint_flavor[iatm, start:stop] = lookup[pair]

    return gpoint_flavor


class ReferenceTables:
    """Container for the tabulated data of a k-distribution.

    Exactly one kind of source has to be given: the Planck tables
    (``totplnk``, ``planck_frac``) for the longwave, or the solar source
    components for the shortwave.
    """
    def __init__(self, gas_names, key_species, band_lims_gpt,
                 band_lims_wavenum, press_ref, press_ref_trop, temp_ref,
                 vmr_ref, kmajor, kminor_lower=None, kminor_upper=None,
                 minor_lower=(), minor_upper=(), rayl_lower=None,
                 rayl_upper=None, totplnk=None, planck_frac=None,
                 solar_source_quiet=None, solar_source_facular=None,
                 solar_source_sunspot=None, tsi_default=None,
                 mg_default=None, sb_default=None):
        """
        Parameters:
            gas_names (list[str]): Names of all gases in the tables.
            key_species (ndarray): Key species pairs
                ``(nband, 2, 2)``.
            band_lims_gpt (ndarray): First and (exclusive) last g-point
                of every band ``(nband, 2)``.
            band_lims_wavenum (ndarray): Wavenumber limits of every band
                ``(nband, 2)`` [cm^-1].
            press_ref (ndarray): Reference pressure ``(npres,)`` [Pa],
                decreasing and equidistant in log-space.
            press_ref_trop (float): Pressure separating the lower and upper
                atmosphere [Pa].
            temp_ref (ndarray): Equidistant reference temperature
                ``(ntemp,)`` [K].
            vmr_ref (ndarray): Reference volume mixing ratios
                ``(ntemp, ngas + 1, 2)``.
            kmajor (ndarray): Major absorption coefficients
                ``(ntemp, npres + 1, neta, ngpt)``.
            kminor_lower, kminor_upper (ndarray): Minor absorption
                coefficients ``(ntemp, neta, ncontrib)``.
            minor_lower, minor_upper (list[MinorContribution]):
                Description of the minor absorbers in both regimes.
            rayl_lower, rayl_upper (ndarray): Rayleigh scattering
                coefficients ``(ntemp, neta, ngpt)``.
            totplnk (ndarray): Band-integrated Planck function
                ``(nPlanckTemp, nband)``.
            planck_frac (ndarray): Planck fractions
                ``(ntemp, npres + 1, neta, ngpt)``.
            solar_source_quiet, solar_source_facular, solar_source_sunspot
                (ndarray): Solar source components ``(ngpt,)``.
            tsi_default, mg_default, sb_default (float): Default total
                solar irradiance, facular and sunspot index.
        """
        self.gas_names = tuple(str(name).strip().lower()
                               for name in gas_names)
        self.key_species = np.asarray(key_species, dtype=np.int32)
        self.band_lims_gpt = np.asarray(band_lims_gpt, dtype=np.int32)
        self.band_lims_wavenum = np.asarray(band_lims_wavenum)
        self.press_ref = np.asarray(press_ref)
        self.press_ref_trop = float(press_ref_trop)
        self.temp_ref = np.asarray(temp_ref)
        self.vmr_ref = np.asarray(vmr_ref)
        self.kmajor = np.asarray(kmajor)

        self.kminor_lower = self._optional_array(kminor_lower)
        self.kminor_upper = self._optional_array(kminor_upper)
        self.minor_lower = tuple(MinorContribution(*m) for m in minor_lower)
        self.minor_upper = tuple(MinorContribution(*m) for m in minor_upper)

        self.rayl_lower = self._optional_array(rayl_lower)
        self.rayl_upper = self._optional_array(rayl_upper)

        self.totplnk = self._optional_array(totplnk)
        self.planck_frac = self._optional_array(planck_frac)

        self.solar_source_quiet = self._optional_array(solar_source_quiet)
        self.solar_source_facular = self._optional_array(solar_source_facular)
        self.solar_source_sunspot = self._optional_array(solar_source_sunspot)
        self.tsi_default = tsi_default
        self.mg_default = mg_default
        self.sb_default = sb_default

        self.check_dimensions()

        self.flavor = create_flavor(self.key_species)
        self.gpoint_flavor = create_gpoint_flavor(
            self.key_species, self.band_lims_gpt, self.flavor)

        logger.debug(
            f'Created reference tables with {self.ngas} gases, '
            f'{self.nband} bands, {self.ngpt} g-points, '
            f'and {self.nflav} flavors.'
        )

    @staticmethod
    def _optional_array(value):
        return None if value is None else np.asarray(value)

    def astype(self, dtype):
        """Return a copy with all floating point tables cast to ``dtype``."""
        tables = copy.copy(self)
        for name, value in vars(self).items():
            if (isinstance(value, np.ndarray)
                    and np.issubdtype(value.dtype, np.floating)):
                setattr(tables, name, value.astype(dtype))

        return tables

    @property
    def ngas(self):
        return len(self.gas_names)

    @property
    def nband(self):
        return self.band_lims_gpt.shape[0]

    @property
    def ngpt(self):
        return self.kmajor.shape[3]

    @property
    def ntemp(self):
        return self.temp_ref.size

    @property
    def npres(self):
        return self.press_ref.size

    @property
    def neta(self):
        return self.kmajor.shape[2]

    @property
    def nflav(self):
        return self.flavor.shape[0]

    @property
    def temp_ref_min(self):
        return self.temp_ref[0]

    @property
    def temp_ref_max(self):
        return self.temp_ref[-1]

    @property
    def temp_ref_delta(self):
        return (self.temp_ref_max - self.temp_ref_min) / (self.ntemp - 1)

    @property
    def press_ref_log(self):
        return np.log(self.press_ref)

    @property
    def press_ref_log_delta(self):
        return ((np.log(self.press_ref[0]) - np.log(self.press_ref[-1]))
                / (self.npres - 1))

    @property
    def press_ref_trop_log(self):
        return np.log(self.press_ref_trop)

    @property
    def totplnk_delta(self):
        """Temperature step of the Planck function table [K]."""
        return ((self.temp_ref_max - self.temp_ref_min)
                / (self.totplnk.shape[0] - 1))

    @property
    def has_rayleigh(self):
        return self.rayl_lower is not None

    @property
    def source_is_internal(self):
        """``True`` for tables with Planck sources (longwave)."""
        return self.totplnk is not None

    @property
    def source_is_external(self):
        """``True`` for tables with a solar source (shortwave)."""
        return self.solar_source_quiet is not None

    @property
    def band_of_gpt(self):
        """Band index of every g-point ``(ngpt,)``."""
        band_of_gpt = np.empty(self.ngpt, dtype=np.int32)
        for ibnd, (start, stop) in enumerate(self.band_lims_gpt):
            band_of_gpt[start:stop] = ibnd

        return band_of_gpt

    def gas_index(self, name):
        """Return the one-based index of a gas, or zero if it is unknown."""
        try:
            return self.gas_names.index(name.lower()) + 1
        except ValueError:
            return 0

    def check_dimensions(self):
        """Check the consistency of all table dimensions.

        Raises:
            ValueError: If any dimension does not match.
        """
        ntemp, npres, ngas = self.ntemp, self.npres, self.ngas
        neta, ngpt, nband = self.neta, self.ngpt, self.nband

        def check(name, array, shape):
            if array.shape != shape:
                raise ValueError(
                    f'Table "{name}" has shape {array.shape} '
                    f'but {shape} is expected.'
                )

        if ntemp < 2 or npres < 2 or neta < 2:
            raise ValueError(
                'Temperature, pressure, and eta grids need at least two '
                'points each.'
            )

        check('kmajor', self.kmajor, (ntemp, npres + 1, neta, ngpt))
        check('vmr_ref', self.vmr_ref, (ntemp, ngas + 1, 2))
        check('key_species', self.key_species, (nband, 2, 2))
        check('band_lims_wavenum', self.band_lims_wavenum, (nband, 2))

        if np.any(self.key_species < 0) or np.any(self.key_species > ngas):
            raise ValueError('Key species refer to unknown gases.')

        starts, stops = self.band_lims_gpt[:, 0], self.band_lims_gpt[:, 1]
        if (starts[0] != 0 or stops[-1] != ngpt
                or np.any(starts[1:] != stops[:-1])
                or np.any(stops <= starts)):
            raise ValueError(
                f'Bands do not cover the {ngpt} g-points of "kmajor" '
                'contiguously.'
            )

        for regime in ('lower', 'upper'):
            kminor = getattr(self, f'kminor_{regime}')
            contributions = getattr(self, f'minor_{regime}')
            if kminor is None:
                if len(contributions) > 0:
                    raise ValueError(
                        f'Minor absorbers of the {regime} atmosphere are '
                        f'given without "kminor_{regime}" table.'
                    )
                continue

            if kminor.shape[:2] != (ntemp, neta):
                raise ValueError(
                    f'Table "kminor_{regime}" has shape {kminor.shape} '
                    f'but ({ntemp}, {neta}, ncontrib) is expected.'
                )

            for m in contributions:
                width = m.gpt_stop - m.gpt_start
                if m.gpt_start < 0 or m.gpt_stop > ngpt or width <= 0:
                    raise ValueError(
                        f'Minor gas "{m.gas}" has invalid g-point range '
                        f'[{m.gpt_start}, {m.gpt_stop}).'
                    )
                if m.kminor_start < 0 or m.kminor_start + width > kminor.shape[2]:
                    raise ValueError(
                        f'Minor gas "{m.gas}" exceeds "kminor_{regime}".'
                    )

        if (self.rayl_lower is None) != (self.rayl_upper is None):
            raise ValueError(
                'Rayleigh tables have to be given for both regimes.')
        if self.has_rayleigh:
            check('rayl_lower', self.rayl_lower, (ntemp, neta, ngpt))
            check('rayl_upper', self.rayl_upper, (ntemp, neta, ngpt))

        if self.source_is_internal == self.source_is_external:
            raise ValueError(
                'Exactly one source type (Planck tables or solar source) '
                'has to be given.'
            )

        if self.source_is_internal:
            if self.planck_frac is None:
                raise ValueError('Planck fractions are missing.')
            check('planck_frac', self.planck_frac, self.kmajor.shape)
            if self.totplnk.ndim != 2 or self.totplnk.shape[1] != nband:
                raise ValueError(
                    f'Table "totplnk" has shape {self.totplnk.shape} '
                    f'but (nPlanckTemp, {nband}) is expected.'
                )
        else:
            for name in ('solar_source_quiet', 'solar_source_facular',
                         'solar_source_sunspot'):
                if getattr(self, name) is None:
                    raise ValueError(f'Solar source "{name}" is missing.')
                check(name, getattr(self, name), (ngpt,))
