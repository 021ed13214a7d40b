"""Read k-distribution tables and write results in netCDF format.

The coefficient files follow the layout of the RRTMGP data files, e.g.
``rrtmgp-data-lw-g256-2018-12-04.nc``. Index variables in these files
are one-based and g-point limits are inclusive; they are converted into
the zero-based, half-open conventions of
:class:`rrtmgpy.gas_optics.ReferenceTables` when read.
"""
import logging
from datetime import datetime

import netCDF4
import numpy as np

from rrtmgpy import (constants, __version__)
from rrtmgpy.gas_optics import (GasOpticsRRTMGP, MinorContribution,
                                ReferenceTables)


__all__ = [
    'read_coefficients',
    'write_coefficients',
    'load_gas_optics',
    'NetcdfHandler',
]

logger = logging.getLogger(__name__)


def _read_strings(variable):
    """Return the entries of a character array as list of strings."""
    return [str(s).strip() for s in netCDF4.chartostring(variable[:])]


def _read_optional(root, name):
    if name in root.variables:
        return root.variables[name][:]
    return None


def _read_scalar(root, name):
    if name in root.variables:
        return float(root.variables[name][...])
    return None


def _read_minor_contributions(root, regime, identifiers):
    """Read the minor absorber description of one regime.

    Parameters:
        root (netCDF4.Dataset): Open coefficient file.
        regime (str): ``'lower'`` or ``'upper'``.
        identifiers (dict): Map from the names used in the minor tables
            to the gas names.

    Returns:
        list[MinorContribution]
    """
    name = f'minor_gases_{regime}'
    if name not in root.variables or root.variables[name].size == 0:
        return []

    gases = _read_strings(root.variables[name])
    limits = root.variables[f'minor_limits_gpt_{regime}'][:]
    scales_with_density = root.variables[
        f'minor_scales_with_density_{regime}'][:]
    scaling_gases = _read_strings(root.variables[f'scaling_gas_{regime}'])
    scale_by_complement = root.variables[f'scale_by_complement_{regime}'][:]
    kminor_start = root.variables[f'kminor_start_{regime}'][:]

    contributions = []
    for i, gas in enumerate(gases):
        scaling_gas = scaling_gases[i]
        contributions.append(MinorContribution(
            gas=identifiers.get(gas, gas),
            gpt_start=int(limits[i, 0]) - 1,
            gpt_stop=int(limits[i, 1]),
            kminor_start=int(kminor_start[i]) - 1,
            scales_with_density=bool(scales_with_density[i]),
            scaling_gas=(identifiers.get(scaling_gas, scaling_gas)
                         if scaling_gas else None),
            scale_by_complement=bool(scale_by_complement[i]),
        ))

    return contributions


def read_coefficients(filename):
    """Read a k-distribution from an RRTMGP coefficient file.

    Parameters:
        filename (str): Path to the netCDF file.

    Returns:
        ReferenceTables: Tabulated k-distribution.

    Raises:
        ValueError: If the tables are inconsistent.
    """
    with netCDF4.Dataset(filename, 'r') as root:
        root.set_auto_mask(False)

        gas_names = _read_strings(root.variables['gas_names'])

        identifiers = {}
        if 'gas_minor' in root.variables:
            identifiers = dict(zip(
                _read_strings(root.variables['gas_minor']),
                _read_strings(root.variables['identifier_minor']),
            ))

        # Convert one-based inclusive limits into half-open ranges.
        band_lims_gpt = root.variables['bnd_limits_gpt'][:].astype(int)
        band_lims_gpt[:, 0] -= 1

        # Older files store a single solar source and the Planck fractions
        # under a misspelled name.
        solar_source_quiet = _read_optional(root, 'solar_source_quiet')
        solar_source_facular = _read_optional(root, 'solar_source_facular')
        solar_source_sunspot = _read_optional(root, 'solar_source_sunspot')
        if solar_source_quiet is None and 'solar_source' in root.variables:
            solar_source_quiet = root.variables['solar_source'][:]
            solar_source_facular = np.zeros_like(solar_source_quiet)
            solar_source_sunspot = np.zeros_like(solar_source_quiet)

        # RRTMGP files store the Planck table band first.
        totplnk = _read_optional(root, 'totplnk')
        if totplnk is not None:
            totplnk = totplnk.T

        planck_frac = _read_optional(root, 'plank_fraction')
        if planck_frac is None:
            planck_frac = _read_optional(root, 'planck_fraction')

        tables = ReferenceTables(
            gas_names=gas_names,
            key_species=root.variables['key_species'][:],
            band_lims_gpt=band_lims_gpt,
            band_lims_wavenum=root.variables['bnd_limits_wavenumber'][:],
            press_ref=root.variables['press_ref'][:],
            press_ref_trop=_read_scalar(root, 'press_ref_trop'),
            temp_ref=root.variables['temp_ref'][:],
            vmr_ref=root.variables['vmr_ref'][:],
            kmajor=root.variables['kmajor'][:],
            kminor_lower=_read_optional(root, 'kminor_lower'),
            kminor_upper=_read_optional(root, 'kminor_upper'),
            minor_lower=_read_minor_contributions(root, 'lower', identifiers),
            minor_upper=_read_minor_contributions(root, 'upper', identifiers),
            rayl_lower=_read_optional(root, 'rayl_lower'),
            rayl_upper=_read_optional(root, 'rayl_upper'),
            totplnk=totplnk,
            planck_frac=planck_frac,
            solar_source_quiet=solar_source_quiet,
            solar_source_facular=solar_source_facular,
            solar_source_sunspot=solar_source_sunspot,
            tsi_default=_read_scalar(root, 'tsi_default'),
            mg_default=_read_scalar(root, 'mg_default'),
            sb_default=_read_scalar(root, 'sb_default'),
        )

    logger.info(f'Read k-distribution from "{filename}".')

    return tables


def _write_strings(group, name, strings, dim):
    strlen = max([len(s) for s in strings] + [1])
    strdim = f'string_len_{name}'
    group.createDimension(strdim, strlen)
    variable = group.createVariable(name, 'S1', (dim, strdim))
    variable[:] = netCDF4.stringtochar(np.array(strings, dtype=f'S{strlen}'))


def write_coefficients(tables, filename):
    """Write a k-distribution in the layout of an RRTMGP coefficient file.

    Parameters:
        tables (ReferenceTables): Tabulated k-distribution.
        filename (str): Path to the netCDF file.
    """
    with netCDF4.Dataset(filename, 'w') as root:
        root.setncatts({
            'created': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'source': f'rrtmgpy {__version__}',
        })

        ntemp, npres_interp, neta, ngpt = tables.kmajor.shape
        for dim, size in (('absorber', tables.ngas),
                          ('absorber_ext', tables.ngas + 1),
                          ('bnd', tables.nband),
                          ('gpt', ngpt),
                          ('pair', 2),
                          ('atmos_layer', 2),
                          ('temperature', ntemp),
                          ('pressure', tables.npres),
                          ('pressure_interp', npres_interp),
                          ('mixing_fraction', neta)):
            root.createDimension(dim, size)

        def write(name, value, dims=(), datatype=None):
            value = np.asarray(value)
            variable = root.createVariable(
                name, datatype or value.dtype, dims)
            variable[...] = value

        _write_strings(root, 'gas_names', list(tables.gas_names), 'absorber')

        band_lims_gpt = tables.band_lims_gpt.copy()
        band_lims_gpt[:, 0] += 1
        write('bnd_limits_gpt', band_lims_gpt, ('bnd', 'pair'), 'i4')
        write('bnd_limits_wavenumber', tables.band_lims_wavenum,
              ('bnd', 'pair'))
        write('key_species', tables.key_species,
              ('bnd', 'atmos_layer', 'pair'), 'i4')
        write('press_ref', tables.press_ref, ('pressure',))
        write('press_ref_trop', tables.press_ref_trop)
        write('temp_ref', tables.temp_ref, ('temperature',))
        write('vmr_ref', tables.vmr_ref,
              ('temperature', 'absorber_ext', 'atmos_layer'))
        write('kmajor', tables.kmajor,
              ('temperature', 'pressure_interp', 'mixing_fraction', 'gpt'))

        for regime in ('lower', 'upper'):
            contributions = getattr(tables, f'minor_{regime}')
            kminor = getattr(tables, f'kminor_{regime}')
            if kminor is None or len(contributions) == 0:
                continue

            intervals = f'minor_absorber_intervals_{regime}'
            contributors = f'contributors_{regime}'
            root.createDimension(intervals, len(contributions))
            root.createDimension(contributors, kminor.shape[-1])

            write(f'kminor_{regime}', kminor,
                  ('temperature', 'mixing_fraction', contributors))
            _write_strings(root, f'minor_gases_{regime}',
                           [m.gas for m in contributions], intervals)
            _write_strings(root, f'scaling_gas_{regime}',
                           [m.scaling_gas or '' for m in contributions],
                           intervals)
            write(f'minor_limits_gpt_{regime}',
                  [(m.gpt_start + 1, m.gpt_stop) for m in contributions],
                  (intervals, 'pair'), 'i4')
            write(f'minor_scales_with_density_{regime}',
                  [int(m.scales_with_density) for m in contributions],
                  (intervals,), 'i4')
            write(f'scale_by_complement_{regime}',
                  [int(m.scale_by_complement) for m in contributions],
                  (intervals,), 'i4')
            write(f'kminor_start_{regime}',
                  [m.kminor_start + 1 for m in contributions],
                  (intervals,), 'i4')

        if tables.has_rayleigh:
            write('rayl_lower', tables.rayl_lower,
                  ('temperature', 'mixing_fraction', 'gpt'))
            write('rayl_upper', tables.rayl_upper,
                  ('temperature', 'mixing_fraction', 'gpt'))

        if tables.source_is_internal:
            root.createDimension('temperature_Planck',
                                 tables.totplnk.shape[0])
            write('totplnk', tables.totplnk.T, ('bnd', 'temperature_Planck'))
            write('plank_fraction', tables.planck_frac,
                  ('temperature', 'pressure_interp', 'mixing_fraction',
                   'gpt'))
        else:
            for component in ('quiet', 'facular', 'sunspot'):
                write(f'solar_source_{component}',
                      getattr(tables, f'solar_source_{component}'), ('gpt',))
            for name in ('tsi_default', 'mg_default', 'sb_default'):
                if getattr(tables, name) is not None:
                    write(name, getattr(tables, name))

    logger.debug(f'Wrote k-distribution to "{filename}".')


def load_gas_optics(filename, available_gases, dtype=np.float64, **kwargs):
    """Create a gas optics engine from an RRTMGP coefficient file.

    Parameters:
        filename (str): Path to the netCDF file.
        available_gases (iterable[str]): Names of the gases that will
            be provided.
        dtype (numpy.dtype): Floating point precision.
        **kwargs: Additional keyword arguments are passed to
            :class:`rrtmgpy.gas_optics.GasOpticsRRTMGP`.

    Returns:
        GasOpticsRRTMGP
    """
    return GasOpticsRRTMGP(available_gases, read_coefficients(filename),
                           dtype=dtype, **kwargs)


def convert_unsupported_types(variable):
    """Convert variables into a netCDF-supported data type."""
    if variable is None:
        return np.nan

    if isinstance(variable, bool):
        return 1 if variable else 0

    if isinstance(variable, str):
        return np.asarray([variable])

    if hasattr(variable, 'values'):
        return variable.values

    return variable


class NetcdfHandler:
    """Store containers of per-column data in a netCDF file.

    Every :class:`rrtmgpy.component.Component` is stored in its own group.
    The coordinates are shared and stored in the root group.

    Note:
        The netCDF handler typecasts variables from ``double`` into ``float``
        in order to save disk space.

    Usage:
        >>> output = solver.solve(state, sfc_emis=1., output=output)
        >>> nc = NetcdfHandler('fluxes.nc', title='clear-sky longwave')
        >>> nc.write(atmosphere=state, **dict(output.components()))

    """
    def __init__(self, filename, title=''):
        self.filename = filename
        self.title = title
        self.groups = []

        self.create_file()

    def create_file(self):
        with netCDF4.Dataset(self.filename, mode='w') as root:
            root.setncatts({
                'title': self.title,
                'created': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                'source': f'rrtmgpy {__version__}',
            })

        logger.debug(f'Created "{self.filename}".')

    def create_dimension(self, group, name, data):
        if name not in group.dimensions:
            group.createDimension(name, np.asarray(data).size)

            logger.debug(f'Created dimension "{name}".')

    def create_variable(self, group, name, value, dims=()):
        value = convert_unsupported_types(value)

        dtype = np.asarray(value).dtype
        variable = group.createVariable(
            varname=name,
            # Store double variables in single precision to save disk space.
            datatype="float32" if dtype == "float64" else dtype,
            dimensions=dims,
            zlib=True,
        )
        variable[:] = value

        logger.debug(f'Created variable "{name}".')

        self.append_description(variable)

    def append_description(self, variable):
        desc = constants.variable_description.get(variable.name, {})

        for attribute_name, value in desc.items():
            if attribute_name == 'dims':
                continue
            setattr(variable, attribute_name, value)

    def create_group(self, component, groupname):
        with netCDF4.Dataset(self.filename, 'a') as root:
            if groupname in root.groups:
                raise ValueError(
                    f'Group "{groupname}" already exists in "{self.filename}".')

            group = root.createGroup(groupname)
            group.setncattr('class', type(component).__name__)

            for attr, value in component.attrs.items():
                if isinstance(value, (bool, np.bool_)):
                    value = int(value)
                if isinstance(value, (str, int, float, np.number)):
                    group.setncattr(attr, value)

            for name, coord in component.coords.items():
                self.create_dimension(root, name, coord)
                if name not in root.variables:
                    self.create_variable(root, name, coord, (name,))

            for varname, (dims, data) in component.data_vars.items():
                if data is not None:
                    self.create_variable(group, varname, data, dims)

            logger.debug(f'Created group "{groupname}".')

            self.groups.append(groupname)

    def write(self, **components):
        """Write containers into groups named after the keyword.

        Parameters:
            **components (Component): Containers to store.
        """
        for name, component in components.items():
            self.create_group(component, name)
