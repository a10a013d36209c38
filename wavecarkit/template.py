#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
template.py — Input template generator for wavecarkit
=====================================================
Writes an example *wavecar.inp* control file for `wavecarkit --template`.
Existing files are never overwritten.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations
import os
from pathlib import Path
from textwrap import dedent

BANNER = r"""
══════════════════════════════════════════════════════════════════════
     VASP WAVECAR decoder (wavecarkit)
══════════════════════════════════════════════════════════════════════
"""

WAVECAR_INP_TEMPLATE = dedent("""\
    # wavecar.inp — edit values in the [WAVECAR] section
    [WAVECAR]
    wavecar = WAVECAR           # RTAG 45200 WAVECAR to decode
    centering = P               # P | I | F | C | A | B | R

    output_prefix = wavecar     # output stem for exports
    export_csv = false          # <prefix>_bands.csv  (energies / occupancies)
    export_npz = false          # <prefix>.npz        (k-points, bands, coefficients)

    log_file =                  # blank = console only, auto = run_<timestamp>.log
    verbose = false             # debug logging
    """)


def write_wavecar_template(filename: str | os.PathLike = "wavecar.inp") -> bool:
    """Write the template if `filename` does not exist. Returns True if written."""
    path = Path(filename)
    if path.exists():
        return False
    path.write_text(WAVECAR_INP_TEMPLATE, encoding="utf-8")
    return True


def generate_template(input_file: str = "wavecar.inp") -> bool:
    created = write_wavecar_template(input_file)
    print(BANNER)
    status = "created" if created else "exists (kept)"
    print(f"  - {input_file:13s} : {status}")
    print(f"\nEdit '{input_file}' and re-run:  wavecarkit --input_file {input_file}\n")
    return created


__all__ = ["WAVECAR_INP_TEMPLATE", "write_wavecar_template", "generate_template"]
