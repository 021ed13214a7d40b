# -*- coding: utf-8 -*-
"""Radiative transfer solvers for spectrally resolved fluxes.

Compute g-point fluxes from optical properties and sources:

    >>> rte_lw(optical_props, top_at_1, sources, sfc_emis,
    ...        gpt_flux_up, gpt_flux_dn)
    >>> rte_sw(optical_props, top_at_1, mu0, toa_src, sfc_alb_dir,
    ...        sfc_alb_dif, gpt_flux_up, gpt_flux_dn, gpt_flux_dir)
"""
from .longwave import *  # noqa
from .shortwave import *  # noqa
