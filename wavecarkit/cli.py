#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
cli.py — Command-line interface and configuration parser for wavecarkit
=======================================================================
Defines the `wavecarkit` command: decode a WAVECAR, log a summary of what
was found and optionally export band data and plane-wave coefficients.

Responsibilities
----------------
•  Read the optional control file (*wavecar.inp*, section `[WAVECAR]`) with
   configparser; its values become the argparse defaults.
•  Parse command-line flags; flags always win over the control file.
•  Set up logging, decode, summarize and export.

Key functions
--------------
- parse_arguments(argv)           : Parser returning a validated args object.
- _extract_input_file_from_argv() : Detects the control-file name on the CLI.
- bands_dataframe(wfc)            : Band table as a pandas DataFrame.
- export_npz(wfc, path)           : numpy archive of the decoded data.
- main(argv)                      : Entry point, returns the exit status.

Typical usage
--------------
    wavecarkit --wavecar WAVECAR --csv --npz
    wavecarkit --template              # write wavecar.inp and exit

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""


from __future__ import annotations

import os
import sys
import argparse
import configparser
import logging

import numpy as np
import pandas as pd

from .constants import CENTERINGS
from .errors import FormatError
from .geometry import cell_parameters
from .io.wavecar import read_wavecar_file
from .logging_utils import setup_logger, banner
from .template import generate_template

logger = logging.getLogger("wavecarkit")


def _extract_input_file_from_argv(argv, default_name="wavecar.inp"):
    """
    Return the input file path specified on the command line if present,
    supporting both '--input_file foo' and '--input_file=foo'.
    """
    if argv is None:
        argv = []

    for i, tok in enumerate(argv):
        if tok.startswith("--input_file="):
            return tok.split("=", 1)[1]
        if tok == "--input_file" and i + 1 < len(argv):
            return argv[i + 1]

    return default_name


def parse_arguments(argv: list[str] | None = None):
    # -------------------------
    # defaults
    # -------------------------
    default_params = {
        'wavecar': 'WAVECAR',
        'centering': 'P',
        'output_prefix': 'wavecar',
        'export_csv': False,
        'export_npz': False,
        'log_file': None,
        'verbose': False,
        'input_file': 'wavecar.inp',
    }

    # ----------------------------------------------------------------
    # Read wavecar.inp with inline comments and blank values
    # ----------------------------------------------------------------
    input_file = _extract_input_file_from_argv(argv, default_params['input_file'])
    if os.path.exists(input_file):
        cfg = configparser.ConfigParser(
            inline_comment_prefixes=('#', ';'),
            allow_no_value=True,
        )
        cfg.read(input_file, encoding="utf-8")

        if 'WAVECAR' not in cfg:
            raise ValueError("The input file must contain a [WAVECAR] section.")
        section = cfg['WAVECAR']

        def _get_clean(key, fallback=None):
            if key not in section:
                return fallback
            val = section.get(key)
            if val is None:
                return fallback
            val = val.strip()
            return val if val != "" else fallback

        def _get_bool_safe(key, fallback=None):
            if _get_clean(key) is None:
                return fallback
            try:
                return section.getboolean(key)
            except ValueError:
                return fallback

        for key in ('wavecar', 'output_prefix', 'log_file'):
            val = _get_clean(key, default_params[key])
            if val is not None:
                default_params[key] = val

        ctr = _get_clean('centering', default_params['centering'])
        if ctr is not None:
            default_params['centering'] = ctr.upper()

        for key in ('export_csv', 'export_npz', 'verbose'):
            val = _get_bool_safe(key, default_params[key])
            if val is not None:
                default_params[key] = val

    parser = argparse.ArgumentParser(
        prog="wavecarkit",
        description="Decode a VASP WAVECAR (RTAG 45200) into plane-wave coefficients and band data."
    )
    parser.add_argument('--wavecar', metavar='FILE', default=default_params['wavecar'],
                        help='Path to the WAVECAR file')
    parser.add_argument('--centering', type=lambda s: s.upper(), choices=list(CENTERINGS),
                        default=default_params['centering'],
                        help='Lattice-centering tag recorded with the real lattice')
    parser.add_argument('--output_prefix', type=str, default=default_params['output_prefix'],
                        help='Output prefix for exported files')
    parser.add_argument('--csv', dest='export_csv', action='store_true',
                        default=default_params['export_csv'],
                        help='Write <prefix>_bands.csv with energies and occupancies')
    parser.add_argument('--npz', dest='export_npz', action='store_true',
                        default=default_params['export_npz'],
                        help='Write <prefix>.npz with k-points, bands and coefficients')
    parser.add_argument('--log_file', type=str, default=default_params['log_file'],
                        help="Also log to this file ('auto' = run_<timestamp>.log)")
    parser.add_argument('-v', '--verbose', action='store_true', default=default_params['verbose'],
                        help='Debug logging')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Hide the tqdm progress bar (keep normal logging)')
    parser.add_argument('--input_file', type=str, default=default_params['input_file'],
                        help='Control file')
    parser.add_argument('-0', '--template', dest='template', action='store_true',
                        help='Generate a template wavecar.inp in the current folder and exit.')

    args = parser.parse_args(argv)

    if not args.output_prefix:
        args.output_prefix = 'wavecar'
    return args


# ----------------------------------------------------------------------
#  Summary and exports
# ----------------------------------------------------------------------
def log_summary(wfc, log: logging.Logger = logger) -> None:
    a, b, c, alpha, beta, gamma = cell_parameters(wfc.lattice)
    log.info(f"Lattice ({wfc.lattice.centering}) : a={a:.5f} b={b:.5f} c={c:.5f} Å, "
             f"α={alpha:.3f} β={beta:.3f} γ={gamma:.3f}°")
    log.info(f"Volume        : {wfc.lattice.volume:.4f} Å³")
    log.info(f"ENCUT         : {wfc.encut:.3f} eV")
    log.info(f"HKL bounds    : ±{wfc.bounds}")
    log.info(f"Spins / k / bands : {wfc.nspin} / {wfc.nkpts} / {wfc.nbands}")
    npw = wfc.nplanewaves
    log.info(f"Plane waves   : min={npw.min()} max={npw.max()}")


def bands_dataframe(wfc) -> pd.DataFrame:
    rows = []
    for isp, per_spin in enumerate(wfc.bands):
        for ik, kb in enumerate(per_spin):
            kx, ky, kz = kb.kpoint
            for ib, (energy, occ) in enumerate(kb):
                rows.append({
                    "spin": isp + 1, "kpoint": ik + 1,
                    "kx": kx, "ky": ky, "kz": kz,
                    "band": ib + 1, "energy_eV": energy, "occupancy": occ,
                    "nplanewaves": kb.nplanewaves,
                })
    return pd.DataFrame(rows)


def export_npz(wfc, path: str) -> None:
    """
    Save lattice, k-points, energies and occupations plus, per (spin, k),
    `hkl_s{spin}_k{k}` (npw, 3) and `coeffs_s{spin}_k{k}` (nbands, npw).
    """
    arrays = {
        "lattice": wfc.lattice.vectors,
        "reciprocal": wfc.reciprocal.vectors,
        "encut": np.array(wfc.encut),
        "bounds": np.array(wfc.bounds),
        "kpoints": wfc.kpoints,
        "energies": wfc.energies,
        "occupations": wfc.occupations,
    }
    for isp in range(wfc.nspin):
        for ik in range(wfc.nkpts):
            pws = wfc.planewaves[isp][ik]
            arrays[f"hkl_s{isp}_k{ik}"] = pws[0].hkl
            arrays[f"coeffs_s{isp}_k{ik}"] = np.array([pw.coeffs for pw in pws])
    np.savez(path, **arrays)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = parse_arguments(argv)

    if args.template:
        generate_template(args.input_file)
        return 0

    log = setup_logger("wavecarkit", logfile=args.log_file,
                       level=logging.DEBUG if args.verbose else logging.INFO)
    banner(log)

    try:
        wfc = read_wavecar_file(args.wavecar, centering=args.centering,
                                progress=not args.quiet and sys.stdout.isatty())
    except FileNotFoundError as err:
        log.error(str(err))
        return 1
    except FormatError as err:
        log.error(f"Cannot decode {args.wavecar}: {err}")
        return 1

    log_summary(wfc, log)

    if args.export_csv:
        csv_path = f"{args.output_prefix}_bands.csv"
        bands_dataframe(wfc).to_csv(csv_path, index=False)
        log.info(f"Saved band table → {csv_path}")
    if args.export_npz:
        npz_path = f"{args.output_prefix}.npz"
        export_npz(wfc, npz_path)
        log.info(f"Saved coefficients → {npz_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
