#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
wavecar.py — WAVECAR decoder and reference encoder
==================================================
Reads VASP *WAVECAR* files written with RTAG = 45200 (float64 headers,
complex64 plane-wave coefficients, collinear spin) into a `Wavefunction`,
re-deriving the HKL index of every coefficient from the cutoff and lattice.
Original format notes: WaveTrans, https://www.andrew.cmu.edu/user/feenstra/wavetrans/

Record layout
-------------
  Record 0 => [ record_len (bytes), nspin, rtag ]
  Record 1 => [ nkpts, nbands, encut, 3×3 lattice (rows a1, a2, a3) ]
  then, for every spin (outer) and k-point (inner):
    header => [ nplw, kx, ky, kz, (E, <unused>, occ) × nbands ]
    nbands records => nplw complex64 coefficients each

The coefficient records carry no G-vectors; see `wavecarkit.gvectors` for
how their order is recovered.

Main functions
---------------
- **read_wavecar(stream, centering='P')**  decode from an open binary stream
- **read_wavecar_file(path='WAVECAR')**    open, decode, close
- **write_wavecar(wfc, stream)**           write the same layout back

Features
---------
•  Every header count is validated as an exact integer.
•  Truncated files and record overruns raise `FormatError` with the record,
   spin, k-point and band involved.
•  Optional tqdm progress bar over k-points.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations
import logging
import os

import numpy as np
from tqdm import tqdm

from ..constants import RTAG_SINGLE, FLOAT64_BYTES, COMPLEX64_BYTES, MAX_HKL_STATES
from ..errors import FormatError
from ..geometry import RealLattice, reciprocal_of, max_hkl_index
from ..gvectors import enumerate_gvectors
from ..wavefunction import KPointBands, PlaneWaveBand, Wavefunction
from .records import RecordReader, RecordWriter

logger = logging.getLogger("wavecarkit.wavecar")
if not logger.handlers:
    logger.addHandler(logging.NullHandler())  # stay silent unless main sets a handler


def _tag_repr(value: float):
    return int(value) if np.isfinite(value) and value == np.floor(value) else value


###############################################################################
# DECODER
###############################################################################
def read_wavecar(stream, centering: str = "P", *, progress: bool = False) -> Wavefunction:
    """
    Decode a WAVECAR from a readable, seekable binary stream.

    The stream is borrowed; closing it is up to the caller.

    Parameters
    ----------
    stream : binary file object
    centering : str
        Lattice-centering tag stored with the real lattice ('P', 'I', 'F', ...).
    progress : bool
        Show a tqdm progress bar over k-points.

    Raises
    ------
    FormatError
        on any structural problem; no partial result is returned.
    """
    rr = RecordReader(stream)

    # ── record 0 ─────────────────────────────────────────────────────────
    recl = rr.discover_record_length()
    rr.next_record()
    rr.skip(FLOAT64_BYTES)                      # record length, already known
    nspin_raw, rtag = rr.read_float64(2)
    if rtag != RTAG_SINGLE:
        raise FormatError(f"Unsupported format: format value is {_tag_repr(rtag)}",
                          record=rr.record)
    nspin = _spin_count(nspin_raw)

    # ── record 1 ─────────────────────────────────────────────────────────
    rr.next_record()
    nkpts  = rr.read_count("kpoint_count")
    nbands = rr.read_count("band_count")
    encut  = rr.read_scalar()
    if nkpts < 1 or nbands < 1:
        raise FormatError(f"WAVECAR declares {nkpts} k-points and {nbands} bands",
                          record=rr.record)
    lattice = RealLattice(rr.read_float64(9).reshape(3, 3), centering=centering)
    recip   = reciprocal_of(lattice)
    bounds  = max_hkl_index(recip, encut)
    nstates = int(np.prod([2 * n + 1 for n in bounds], dtype=object))
    if nstates > MAX_HKL_STATES:
        raise FormatError(f"energy cutoff {encut:g} eV gives an HKL box {bounds} of "
                          f"{nstates} states (limit {MAX_HKL_STATES}); corrupt cutoff?",
                          record=rr.record)

    logger.debug(f"[read_wavecar] recl={recl}, nspin={nspin}, nkpts={nkpts}, "
                 f"nbands={nbands}, encut={encut:.3f}, hkl bounds={bounds}")

    # appended as records are read; declared counts never size an allocation
    bands = []
    planewaves = []

    for isp in range(nspin):
        spin_bands, spin_pws = [], []
        for ik in tqdm(range(nkpts), desc=f"WAVECAR spin {isp + 1}/{nspin}",
                       disable=not progress, leave=False):
            try:
                kb = _read_kpoint_header(rr, nbands)
                if isp > 0 and not np.array_equal(kb.kpoint, bands[0][ik].kpoint):
                    raise FormatError(
                        f"k-point {kb.kpoint.tolist()} differs from the first spin's "
                        f"{bands[0][ik].kpoint.tolist()}", record=rr.record)
                spin_bands.append(kb)
                spin_pws.append([
                    _read_band(rr, kb, recip, encut, bounds, ib) for ib in range(nbands)
                ])
            except FormatError as err:
                raise err.with_context(spin=isp, kpoint=ik) from None
        bands.append(spin_bands)
        planewaves.append(spin_pws)

    wfc = Wavefunction(lattice, recip, encut, bounds, bands, planewaves)
    logger.info(f"[read_wavecar] LOADED => {wfc!r}")
    return wfc


def _spin_count(value: float) -> int:
    if value not in (1.0, 2.0):
        raise FormatError(f"spin count must be 1 or 2, found {_tag_repr(value)}", record=0)
    return int(value)


def _read_kpoint_header(rr: RecordReader, nbands: int) -> KPointBands:
    """[ nplw, kx, ky, kz ] + 3*nbands (E, unused, occ)."""
    rr.next_record()
    logger.debug(f"[read_wavecar] k-point header at byte {rr.position} (record {rr.record})")
    nplw = rr.read_count("plane_wave_count")
    kvec = rr.read_float64(3)
    band_data = rr.read_float64(3 * nbands).reshape((nbands, 3))
    logger.debug(f"[read_wavecar] k = [{kvec[0]:.6f} {kvec[1]:.6f} {kvec[2]:.6f}], "
                 f"nplw = {nplw}")
    # band_data[:, 1] is not used
    return KPointBands(kvec, nplw, band_data[:, 0], band_data[:, 2])


def _read_band(rr: RecordReader, kb: KPointBands, recip, encut: float, bounds,
               ib: int) -> PlaneWaveBand:
    rr.next_record()
    try:
        coeffs = rr.read_complex64(kb.nplanewaves)
        # fresh odometer for every band
        hkl = enumerate_gvectors(kb.kpoint, recip, encut, bounds, kb.nplanewaves)
    except FormatError as err:
        raise err.with_context(band=ib, record=rr.record) from None
    return PlaneWaveBand(hkl, coeffs)


def read_wavecar_file(path: str | os.PathLike = "WAVECAR", centering: str = "P",
                      *, progress: bool = False) -> Wavefunction:
    """Decode the WAVECAR at `path` (default: ./WAVECAR)."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"[read_wavecar_file] File not found: {path}")
    with open(path, "rb") as fh:
        return read_wavecar(fh, centering=centering, progress=progress)


###############################################################################
# REFERENCE ENCODER
###############################################################################
def required_record_length(wfc: Wavefunction) -> int:
    """Smallest record length (bytes) holding every record of `wfc`."""
    sizes = [
        3 * FLOAT64_BYTES,
        (3 + 9) * FLOAT64_BYTES,
        (4 + 3 * wfc.nbands) * FLOAT64_BYTES,
    ]
    sizes.extend(kb.nplanewaves * COMPLEX64_BYTES
                 for per_spin in wfc.bands for kb in per_spin)
    return max(sizes)


def write_wavecar(wfc: Wavefunction, stream, record_length: int | None = None) -> int:
    """
    Write `wfc` in the RTAG=45200 layout and return the record length used.

    Coefficients are written in their stored order; HKL indices are not
    written, so `wfc` must hold them in enumeration order (as decoded).
    The unused middle column of the band triplets is written as zero.
    """
    needed = required_record_length(wfc)
    recl = needed if record_length is None else int(record_length)
    if recl < needed:
        raise ValueError(f"record length {recl} bytes is smaller than the {needed} bytes required")

    w = RecordWriter(stream, recl)
    w.next_record()
    w.write_float64(recl, wfc.nspin, RTAG_SINGLE)
    w.next_record()
    w.write_float64(wfc.nkpts, wfc.nbands, wfc.encut, *wfc.lattice.vectors.ravel())

    for isp in range(wfc.nspin):
        for ik in range(wfc.nkpts):
            kb = wfc.bands[isp][ik]
            w.next_record()
            w.write_float64(kb.nplanewaves, *kb.kpoint)
            for energy, occ in kb:
                w.write_float64(energy)
                w.write_gap(FLOAT64_BYTES)
                w.write_float64(occ)
            for pw in wfc.planewaves[isp][ik]:
                if len(pw) != kb.nplanewaves:
                    raise ValueError(f"band holds {len(pw)} coefficients, header says "
                                     f"{kb.nplanewaves} (spin={isp}, kpoint={ik})")
                w.next_record()
                w.write_complex64(pw.coeffs)
    w.close()
    return recl


__all__ = ["read_wavecar", "read_wavecar_file", "write_wavecar", "required_record_length"]
