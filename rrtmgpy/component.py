import copy
from collections.abc import Hashable

import numpy as np
import xarray as xr

from rrtmgpy import constants


__all__ = [
    'Component',
]


class Component:
    """Base class for all containers of per-column data.

    Public attributes and named arrays are tracked separately from the
    Python object state. A container therefore knows its own dimensions,
    can be written to netCDF by :class:`rrtmgpy.netcdf.NetcdfHandler`,
    converted into an `xarray.Dataset`, and sliced into blocks of columns
    without copying.

    A minimal container:

    >>> class Broadband(Component):
    ...     def __init__(self, ncol, nlev):
    ...         self.name = 'clear-sky'
    ...         self['flux_up'] = (('col', 'lev'), np.zeros((ncol, nlev)))
    ...         self.coords = {'col': np.arange(ncol), 'lev': np.arange(nlev)}

    >>> fluxes = Broadband(ncol=2, nlev=3)
    >>> fluxes.attrs
    {'name': 'clear-sky'}
    >>> fluxes.data_vars['flux_up'][0]
    ('col', 'lev')

    """
    def __new__(cls, *args, **kwargs):
        instance = super().__new__(cls)
        instance._attrs = {}
        instance._data_vars = {}
        instance.coords = {}

        return instance

    def __setattr__(self, name, value):
        object.__setattr__(self, name, value)

        # Private names and the coordinates are not stored as attributes.
        if not name.startswith('_') and name != 'coords':
            self._attrs[name] = value

    def __getattr__(self, name):
        if name.startswith('__'):
            raise AttributeError(name)

        try:
            return self._attrs[name]
        except KeyError:
            raise AttributeError(
                f'{type(self).__name__!r} object has no attribute {name!r}')

    @property
    def attrs(self):
        """Dictionary containing all public attributes."""
        return self._attrs

    def __setitem__(self, key, value):
        if isinstance(value, tuple):
            self._data_vars[key] = value
        else:
            # Replace the data of an existing variable.
            self._data_vars[key] = (self._data_vars[key][0], value)

    def __getitem__(self, key):
        try:
            return self._data_vars[key][1]
        except KeyError:
            return self.coords[key]

    def __contains__(self, key):
        return key in self._data_vars

    @property
    def data_vars(self):
        """Dictionary mapping variable names to ``(dims, data)``."""
        return self._data_vars

    def __repr__(self):
        dims = ', '.join(f'{d}: {np.size(v)}' for d, v in self.coords.items())
        return f'<{self}({dims}) object at {id(self)}>'

    def __str__(self):
        return self.__class__.__name__

    def __hash__(self):
        raise TypeError(f'unhashable type: {type(self).__name__}')

    def hash_attributes(self):
        """Create a hash from the class name and all hashable attributes."""
        values = tuple(value for _, value in sorted(self.attrs.items())
                       if isinstance(value, Hashable))

        return hash((type(self).__name__,) + values)

    def to_dataset(self):
        """Convert the container into an `xarray.Dataset`.

        Raises:
            ValueError: If no coordinates are defined.
        """
        if not self.coords:
            raise ValueError(f'{self} has no coordinates.')

        data_vars = {name: (dims, data)
                     for name, (dims, data) in self._data_vars.items()
                     if data is not None}

        return xr.Dataset(data_vars, coords=self.coords, attrs=self.attrs)

    def create_variable(self, name, data=None, dims=None):
        """Create a variable in the container.

        Parameters:
            name (str): Variable name.
            data (``np.ndarray``): Data array with one axis per dimension.
            dims (tuple[str]): Dimension names. If ``None``, the dimensions
                listed in :data:`rrtmgpy.constants.variable_description`
                are used.

        Example:
            >>> c = Component()
            >>> c.create_variable('flux_up', data=np.zeros((2, 5)))
            >>> c.data_vars['flux_up'][0]
            ('col', 'lev')

        """
        if dims is None:
            description = constants.variable_description.get(name, {})
            if 'dims' not in description:
                raise ValueError(
                    f'Could not determine default dimensions for "{name}". '
                    'You can provide them using the `dims` keyword.'
                )
            dims = description['dims']

        if data is not None and np.ndim(data) != len(dims):
            raise ValueError(
                f'Variable "{name}" has {np.ndim(data)} dimensions '
                f'but {len(dims)} dimension names {dims} are given.'
            )

        self[name] = (tuple(dims), data)

    def set(self, variable, value):
        """Fill a variable with a scalar or assign an array in place."""
        self[variable][...] = value

    def get(self, variable, default=None):
        """Return the values of a variable.

        Parameters:
            variable (str): Variable key.
            default (float or ndarray): Returned if the variable is not
                found.

        Raises:
            KeyError: If the variable is not found and no default is given.
        """
        try:
            return self[variable]
        except KeyError:
            if default is None:
                raise KeyError(
                    f'Variable "{variable}" not found and no default given.')
            return default

    def subset(self, start, stop, dim='col'):
        """Return a view on a contiguous range along one dimension.

        The returned container shares its memory with the original one.
        Writing into the subset writes into the corresponding range of the
        original arrays.

        Parameters:
            start (int): First index of the range.
            stop (int): Index after the last element of the range.
            dim (str): Dimension name to slice, default is ``'col'``.

        Returns:
            Component: Container of the same type holding views.
        """
        view = copy.copy(self)
        view._attrs = dict(self._attrs)
        view._data_vars = {}

        for name, (dims, data) in self._data_vars.items():
            if data is not None and dim in dims:
                index = [slice(None)] * len(dims)
                index[dims.index(dim)] = slice(start, stop)
                data = data[tuple(index)]
            view._data_vars[name] = (dims, data)

        view.coords = {
            name: coord[start:stop] if name == dim else coord
            for name, coord in self.coords.items()
        }

        return view

    def copy(self):
        """Return a deepcopy of the container."""
        return copy.deepcopy(self)
