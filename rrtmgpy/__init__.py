# -*- coding: utf-8 -*-
"""This package computes radiative fluxes and heating rates of gaseous
atmospheres using a correlated-k distribution (RRTMGP).

The computation is split into self-contained parts: the gas optics turn an
atmospheric state into optical properties and sources, the radiative
transfer solvers turn these into spectrally resolved fluxes, and the
flux containers reduce them into broadband fluxes. The drivers in
:mod:`rrtmgpy.solver` combine all parts and process large numbers of
columns in blocks.
"""
import logging
from os.path import (join, dirname)

__version__ = open(join(dirname(__file__), 'VERSION')).read().strip()

from . import atmosphere
from . import backends
from . import component
from . import constants
from . import fluxes
from . import gas_concentrations
from . import gas_optics
from . import netcdf
from . import optical_props
from . import plots
from . import rte
from . import solver
from . import utils
from . import workarrays
from .atmosphere import AtmosphericState
from .gas_concentrations import GasConcentrations
from .gas_optics import GasOpticsRRTMGP
from .solver import (RadiationSolverLongwave, RadiationSolverShortwave)


def enable_logging():
    """Enable a basic logging configuration.

    The process name is included for more verbose logs in multiprocessing.

    See also:
        :func:``logging.basicConfig``
    """
    logging.basicConfig(
        level=logging.INFO,
        datefmt='%Y-%m-%d %H:%M:%S',
        style='{',  # Allows to use format string syntax in the next line.
        format='{asctime} {processName}:{levelname}:{name}:{message}',
        )
