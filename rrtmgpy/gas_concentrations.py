# -*- coding: utf-8 -*-
"""Volume mixing ratios of the radiatively active gases.

Gas concentrations are stored by (lower case) name. Every gas can be given
as scalar, as profile that applies to all columns, or as full field:

    >>> gas_concs = GasConcentrations()
    >>> gas_concs.set_vmr('co2', 400e-6)
    >>> gas_concs.set_vmr('h2o', h2o_profile)  # shape (nlay,)
    >>> gas_concs.set_vmr('o3', o3_field)  # shape (ncol, nlay)

Gases that have not been set are treated as absent, i.e. their
concentration is zero.
"""
import logging

import numpy as np


__all__ = [
    'GasConcentrations',
]

logger = logging.getLogger(__name__)


class GasConcentrations:
    """Container for gas volume mixing ratios."""
    def __init__(self, concentrations=None):
        """
        Parameters:
            concentrations (dict): Mapping of gas names to volume mixing
                ratios used to initialise the container.
        """
        self._vmr = {}

        if concentrations is not None:
            for name, value in concentrations.items():
                self.set_vmr(name, value)

    def __contains__(self, name):
        return name.lower() in self._vmr

    def __len__(self):
        return len(self._vmr)

    def __repr__(self):
        return f'<GasConcentrations({", ".join(self._vmr)})>'

    def set_vmr(self, name, value):
        """Set the volume mixing ratio of a gas.

        Parameters:
            name (str): Gas name (case insensitive).
            value (float or ndarray): Volume mixing ratio, either scalar,
                profile ``(nlay,)``, or field ``(ncol, nlay)``.

        Raises:
            ValueError: If values are negative, larger than one,
                or of unsupported dimension.
        """
        value = np.asarray(value)

        if value.ndim > 2:
            raise ValueError(
                f'Volume mixing ratio of "{name}" has {value.ndim} '
                'dimensions. Use a scalar, a profile, or a 2D field.'
            )

        if np.any(value < 0.) or np.any(value > 1.):
            raise ValueError(
                f'Volume mixing ratio of "{name}" has to be within [0, 1].'
            )

        self._vmr[name.lower()] = value
        logger.debug(f'Set volume mixing ratio of "{name.lower()}".')

    def get_vmr(self, name, default=None):
        """Return the volume mixing ratio of a gas.

        Parameters:
            name (str): Gas name (case insensitive).
            default (float): Value returned if the gas is not set.

        Returns:
            ndarray: Volume mixing ratio as it was set
            (scalar, profile, or field).
        """
        try:
            return self._vmr[name.lower()]
        except KeyError:
            if default is not None:
                return np.asarray(default)
            raise KeyError(f"Gas '{name}' not found and no default given.")

    def get_gas_names(self):
        """Return the names of all gases that have been set."""
        return tuple(self._vmr.keys())

    def remove(self, *names):
        """Remove one or more gases from the container."""
        for name in names:
            self._vmr.pop(name.lower(), None)

    def subset(self, start, stop):
        """Return gas concentrations for a contiguous range of columns.

        Scalars and profiles are shared by all columns and passed on,
        fields are sliced without copying.
        """
        subset = GasConcentrations()
        for name, value in self._vmr.items():
            subset._vmr[name] = value[start:stop] if value.ndim == 2 else value

        return subset
