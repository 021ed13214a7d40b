# -*- coding: utf-8 -*-
"""Optical properties and sources of gases from a correlated-k distribution.
"""
from .reference import *  # noqa
from .interpolation import *  # noqa
from .absorption import *  # noqa
from .planck import *  # noqa
from .gas_optics import *  # noqa
