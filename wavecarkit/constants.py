#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
constants.py — Physical and format constants for wavecarkit
===========================================================
Single source for the numbers the WAVECAR decoder depends on.

Defined constants
-----------------
Energy scaling:
    C_VASP     2 m_e / hbar^2 in 1/(eV Å²); |k+G|² / C_VASP is the
               plane-wave kinetic energy in eV (value used by WaveTrans).
Format:
    RTAG_SINGLE     the only supported format tag (float64 headers,
                    complex64 coefficients)
    CENTERINGS      accepted lattice-centering tags
    MAX_HKL_STATES  ceiling on the G-vector enumeration box

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""


import numpy as np

# --- canonical internal values (underscore names) ---
_C_VASP    = 0.262465831        # 1/(eV Å²)
_TWO_PI    = 2.0 * np.pi

# --- public aliases ---
C_VASP = _C_VASP
TWO_PI = _TWO_PI

# WAVECAR record 0 format tag: float64 headers, complex64 coefficients
RTAG_SINGLE = 45200

# Byte sizes of the two scalar encodings in the file
FLOAT64_BYTES   = 8
COMPLEX64_BYTES = 8

# primitive, body-, face-, base-centred and rhombohedral
CENTERINGS = ("P", "I", "F", "C", "A", "B", "R")

# Largest HKL enumeration box (states) accepted from a file header
MAX_HKL_STATES = 2 ** 24

__all__ = [
    "_C_VASP", "_TWO_PI",
    "C_VASP", "TWO_PI",
    "RTAG_SINGLE", "FLOAT64_BYTES", "COMPLEX64_BYTES",
    "CENTERINGS", "MAX_HKL_STATES",
]
