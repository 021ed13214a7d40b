"""Common utility functions. """
import logging

import numpy as np

from rrtmgpy import constants


__all__ = [
    'append_description',
    'plev_from_phlev',
    'get_quadratic_pgrid',
    'get_pressure_grids',
    'is_decreasing',
    'is_top_at_1',
    'get_column_blocks',
    'check_array_shape',
    'check_array_dtype',
    'broadcast_columns',
]

logger = logging.getLogger(__name__)


def append_description(dataset, description=None):
    """Append variable attributes to a given dataset.

    Parameters:
          dataset (xarray.Dataset): Dataset including variables to describe.
          description (dict): Dictionary containing variable descriptions.
            The keys are the variable keys used in the Dataset.
            The values are dictionaries themselves containing attributes
            and their names as keys, e.g.:

            >>> desc = {'tau': {'units': '1', 'standard_name': 'optical_thickness'}}

    """
    if description is None:
        description = constants.variable_description

    for key in dataset.variables:
        if key in description:
            dataset[key].attrs = {
                k: v for k, v in description[key].items() if k != 'dims'
            }


def plev_from_phlev(halflevels):
    """Returns full-level pressures for given half-level pressures.

    The interpolation is performed in log-space along the last axis.

    Parameters:
        halflevels (ndarray): Pressure at half-levels.

    Returns:
        ndarray: Pressure at full-level.

    """
    phlev_log = np.log(halflevels)

    return np.exp(0.5 * (phlev_log[..., 1:] + phlev_log[..., :-1]))


def get_quadratic_pgrid(surface_pressure=1000e2, top_pressure=1, num=200):
    r"""Create a pressure grid that is refined towards the top.

    The pressure for every level ``i`` ([0, N]) is given by:

    .. math::
      ln(p/p_\mathrm{t}) = -\frac{\ln(p_\mathrm{s}/p_\mathrm{t})}{2}
        \left(\frac{i^2}{N^2} + \frac{i}{N}\right)
        \ln(p_\mathrm{s}/p_\mathrm{t})

    Parameters:
        surface_pressure (float): Pressure of the lowest first grid point [Pa].
        top_pressure (float): Pressure at the highest last grid point [Pa].
        num (int): Number of grid points.

    Returns:
        ndarray: Pressure grid [Pa].
    """
    i = np.linspace(0, 1, num)
    lnp = np.log(surface_pressure / top_pressure)

    return np.exp(-lnp/2 * (i**2 + i) + lnp) * top_pressure


def get_pressure_grids(surface_pressure=1000e2, top_pressure=1, num=200):
    r"""Create matching pressures at full-levels and half-levels.

    The half-levels range from ``surface_pressure`` to ``top_pressure``,
    i.e. the first element is next to the surface.

    Parameters:
        surface_pressure (float): Pressure of the lowest half-level [Pa].
        top_pressure (float): Pressure at the highest half-level [Pa].
        num (int): Number of **full** pressure levels.

    Returns:
        ndarray, ndarray: Full-level pressure, half-level pressure [Pa].

    See also:
        ``rrtmgpy.utils.get_quadratic_pgrid``
    """
    phlev = get_quadratic_pgrid(
        surface_pressure=surface_pressure,
        top_pressure=top_pressure,
        num=num+1,
    )
    plev = plev_from_phlev(phlev)

    return plev, phlev


def is_decreasing(a):
    """Check if a given array is monotonically decreasing."""
    return np.all(np.diff(a) < 0)


def is_top_at_1(play):
    """Check whether the top of the atmosphere is stored at index 0.

    Parameters:
        play (ndarray): Layer pressure ``(ncol, nlay)``.

    Returns:
        bool: ``True`` if pressure increases with the layer index.
    """
    play = np.atleast_2d(play)

    return bool(play[0, 0] < play[0, -1])


def get_column_blocks(ncol, n_col_block):
    """Split a number of columns into blocks of fixed size.

    All blocks hold ``n_col_block`` columns except for an optional residual
    block at the end that holds the remaining columns.

    Parameters:
        ncol (int): Total number of columns.
        n_col_block (int): Maximum number of columns per block.

    Returns:
        list[tuple[int, int]]: Start and stop index of every block.

    Example:
        >>> get_column_blocks(10, 4)
        [(0, 4), (4, 8), (8, 10)]
    """
    if n_col_block < 1:
        raise ValueError(
            f'Block size has to be positive but is {n_col_block}.')

    n_blocks, n_residual = divmod(ncol, n_col_block)

    blocks = [(i * n_col_block, (i + 1) * n_col_block)
              for i in range(n_blocks)]

    if n_residual > 0:
        blocks.append((ncol - n_residual, ncol))

    return blocks


def check_array_shape(array, shape, name):
    """Raise a ``ValueError`` if an array does not have the expected shape.

    Parameters:
        array (ndarray): Array to check.
        shape (tuple[int]): Expected shape.
        name (str): Variable name used in the error message.
    """
    if np.shape(array) != tuple(shape):
        raise ValueError(
            f'Array "{name}" has shape {np.shape(array)} '
            f'but {tuple(shape)} is expected.'
        )


def check_array_dtype(array, dtype, name):
    """Raise a ``TypeError`` if an array is not of the expected precision.

    Parameters:
        array (ndarray): Array to check.
        dtype (numpy.dtype): Expected data type.
        name (str): Variable name used in the error message.
    """
    if np.asarray(array).dtype != np.dtype(dtype):
        raise TypeError(
            f'Array "{name}" is of type {np.asarray(array).dtype} '
            f'but {np.dtype(dtype)} is expected.'
        )


def broadcast_columns(value, shape, dtype=None):
    """Broadcast a scalar, a profile, or a field to a given shape.

    Parameters:
        value (float or ndarray): Input value. Trailing dimensions have to
            match ``shape``, e.g. a profile ``(nlay,)`` for ``(ncol, nlay)``.
        shape (tuple[int]): Target shape.
        dtype (numpy.dtype): Data type of the returned array.

    Returns:
        ndarray: Read-only broadcasted view on ``value``.
    """
    return np.broadcast_to(np.asarray(value, dtype=dtype), shape)
