#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
gvectors.py — G-vector enumeration order of WAVECAR coefficient records
=======================================================================
A WAVECAR band record holds only the plane-wave coefficients.  Their HKL
indices are implied by the order in which candidate G-vectors are visited
when the file is written; this module re-derives that order.

The walk
--------
An odometer over the box [-n1, n1] × [-n2, n2] × [-n3, n3] starts at the
minimum corner.  One step increments axis 0; a component equal to its upper
bound wraps to its lower bound instead.  The step carries into the next axis
*only if the new component is exactly zero*.  The wrap itself does not carry
(unless n_i = 0).  This gating is what fixes the sequence and must not be
replaced by an ordinary overflow carry.

Per coefficient, in file order: test the current triple, accept it if
E(k+G) < ENCUT, otherwise step and test again; after an acceptance, step
once more.  Each state of the box is tested at most once per band.

Main functions
---------------
- **HKLOdometer**            the stepwise walk
- **odometer_walk(bounds)**  the whole cycle as an (N, 3) array
- **iter_gvectors(...)**     lazy generator of accepted triples
- **enumerate_gvectors(...)** the first `nplanewaves` accepted triples
                              (vectorised), `FormatError` if the box runs out

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations
from functools import lru_cache
import logging

import numpy as np

from .errors import FormatError
from .geometry import ReciprocalLattice, kinetic_energy, kinetic_energies

logger = logging.getLogger("wavecarkit.gvectors")


def _check_bounds(bounds) -> tuple[int, int, int]:
    out = tuple(int(n) for n in bounds)
    if len(out) != 3 or any(n < 0 for n in out):
        raise ValueError(f"bounds must be three non-negative integers, got {bounds!r}")
    return out


class HKLOdometer:
    """Mutable index triple stepping through the HKL box."""

    def __init__(self, bounds):
        self.bounds = _check_bounds(bounds)
        self.hkl = [-n for n in self.bounds]

    @property
    def size(self) -> int:
        """Number of distinct states in one full cycle."""
        return int(np.prod([2 * n + 1 for n in self.bounds]))

    @property
    def current(self) -> tuple[int, int, int]:
        return tuple(self.hkl)

    def reset(self) -> None:
        self.hkl = [-n for n in self.bounds]

    def advance(self) -> tuple[int, int, int]:
        for axis, n in enumerate(self.bounds):
            self.hkl[axis] = -n if self.hkl[axis] == n else self.hkl[axis] + 1
            # carry only onto a fresh zero
            if self.hkl[axis] != 0:
                break
        return self.current


@lru_cache(maxsize=32)
def _walk(bounds: tuple[int, int, int]) -> np.ndarray:
    sizes = np.array([2 * n + 1 for n in bounds])
    nstates = int(np.prod(sizes))

    # The walk is a plain mixed-radix counter on the digits v mod (2n+1):
    # stepping a component is digit+1, and a zero value is the zero digit.
    start = [(-n) % s for n, s in zip(bounds, sizes)]
    linear0 = start[0] + sizes[0] * (start[1] + sizes[1] * start[2])
    linear = (linear0 + np.arange(nstates)) % nstates

    digits = np.empty((nstates, 3), dtype=np.int64)
    digits[:, 0] = linear % sizes[0]
    digits[:, 1] = (linear // sizes[0]) % sizes[1]
    digits[:, 2] = linear // (sizes[0] * sizes[1])

    half = np.array(bounds)
    walk = np.where(digits <= half, digits, digits - sizes)
    walk.setflags(write=False)
    return walk


def odometer_walk(bounds) -> np.ndarray:
    """
    Every state of the box in the order `HKLOdometer.advance` visits them,
    starting from the minimum corner.  Read-only (N, 3) int array.
    """
    return _walk(_check_bounds(bounds))


def iter_gvectors(kpoint, recip: ReciprocalLattice, encut: float, bounds):
    """Yield accepted HKL triples one at a time, stepping a fresh odometer."""
    odo = HKLOdometer(bounds)
    for _ in range(odo.size):
        hkl = odo.current
        if kinetic_energy(kpoint, hkl, recip) < encut:
            yield hkl
        odo.advance()


def enumerate_gvectors(kpoint, recip: ReciprocalLattice, encut: float, bounds,
                       nplanewaves: int) -> np.ndarray:
    """
    HKL indices of the first `nplanewaves` coefficients of one band.

    Equivalent to running the per-coefficient lookup `nplanewaves` times on a
    fresh odometer; evaluated over the whole walk at once.

    Raises
    ------
    FormatError
        if the box is exhausted before `nplanewaves` triples pass the
        cutoff (cutoff/lattice mismatch or corrupt plane-wave count).
    """
    walk = odometer_walk(bounds)
    mask = kinetic_energies(kpoint, walk, recip) < encut
    accepted = walk[mask]
    logger.debug(f"[enumerate_gvectors] k={np.asarray(kpoint).tolist()}: "
                 f"{len(accepted)} sub-cutoff states in box, {nplanewaves} needed")
    if len(accepted) < nplanewaves:
        raise FormatError(
            f"G-vector enumeration exhausted the HKL box {tuple(bounds)} after "
            f"{len(accepted)} of {nplanewaves} plane waves; cutoff or lattice "
            f"does not match the coefficient count")
    hkl = np.array(accepted[:nplanewaves], dtype=np.int64)
    hkl.setflags(write=False)
    return hkl


__all__ = ["HKLOdometer", "odometer_walk", "iter_gvectors", "enumerate_gvectors"]
