#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
geometry.py — Lattice geometry for WAVECAR decoding
===================================================
Real/reciprocal lattice containers and the kinetic-energy arithmetic that
decides which G-vectors belong to the plane-wave basis.

Purpose
--------
•  Hold the real-space lattice read from record 1 of a WAVECAR together with
   its centering tag.
•  Build the reciprocal lattice (rows b_i with a_i·b_j = 2π δ_ij).
•  Evaluate E(k+G) = |k+G|² / C_VASP in eV for one or many index triples.
•  Derive the symmetric HKL bounding box for an energy cutoff.

Key functions
--------------
- **reciprocal_of(real)**
    Dual basis, `FormatError` for a singular cell.

- **kinetic_energy(k, g, recip)** / **kinetic_energies(k, hkl, recip)**
    Scalar and vectorised plane-wave energies.

- **max_hkl_index(recip, encut)**
    Per axis, the first integer n with E(n·b_i) > encut.

- **cell_parameters(real)**
    (a, b, c, α, β, γ) via ASE, for summaries.

Conventions
-----------
Lattice matrices are stored with the basis vectors as *rows*, the order in
which VASP writes them.  k-points and HKL triples are fractional coordinates
of the reciprocal basis, so the Cartesian vector is ``(k + g) @ B``.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""


from __future__ import annotations
from dataclasses import dataclass

import numpy as np
from ase.geometry import cell_to_cellpar

from .constants import C_VASP, TWO_PI, CENTERINGS
from .errors import FormatError

# HKL indices are stored as int32 in VASP
_MAX_HALF_WIDTH = 2 ** 31 - 1


def _frozen(arr, dtype=float) -> np.ndarray:
    out = np.array(arr, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class RealLattice:
    """Real-space basis (rows a1, a2, a3, Å) and its centering tag."""
    vectors: np.ndarray
    centering: str = "P"

    def __post_init__(self):
        vecs = _frozen(self.vectors)
        if vecs.shape != (3, 3):
            raise FormatError(f"lattice must be 3x3, got shape {vecs.shape}")
        ctr = str(self.centering).upper()
        if ctr not in CENTERINGS:
            raise ValueError(f"unknown centering '{self.centering}' "
                             f"(expected one of {', '.join(CENTERINGS)})")
        object.__setattr__(self, "vectors", vecs)
        object.__setattr__(self, "centering", ctr)

    @property
    def volume(self) -> float:
        return float(abs(np.linalg.det(self.vectors)))


@dataclass(frozen=True, eq=False)
class ReciprocalLattice:
    """Reciprocal basis (rows b1, b2, b3, 1/Å, 2π included)."""
    vectors: np.ndarray

    def __post_init__(self):
        vecs = _frozen(self.vectors)
        if vecs.shape != (3, 3):
            raise FormatError(f"reciprocal lattice must be 3x3, got shape {vecs.shape}")
        object.__setattr__(self, "vectors", vecs)


# ----------------------------------------------------------------------
def reciprocal_of(real: RealLattice) -> ReciprocalLattice:
    """
    Return the reciprocal lattice B = 2π (A⁻¹)ᵀ of `real`.

    A degenerate cell means the lattice record is corrupt, so the failure is a
    `FormatError` rather than a `LinAlgError`.
    """
    A = real.vectors
    if not np.all(np.isfinite(A)):
        raise FormatError("lattice vectors contain non-finite values")
    det = np.linalg.det(A)
    # relative test: det against the product of the vector lengths
    scale = float(np.prod(np.linalg.norm(A, axis=1)))
    if scale == 0.0 or abs(det) <= 1e-12 * scale:
        raise FormatError(f"lattice is singular (det = {det:.3e}); degenerate cell")
    return ReciprocalLattice(TWO_PI * np.linalg.inv(A).T)


def kinetic_energies(k, hkl, recip: ReciprocalLattice) -> np.ndarray:
    """Kinetic energies (eV) of k + g for an (n, 3) array of index triples."""
    kg = np.asarray(hkl, float).reshape(-1, 3) + np.asarray(k, float)[None, :]
    B = recip.vectors
    # elementwise only: each row rounds the same way whatever the batch size
    cart = kg[:, 0, None] * B[0] + kg[:, 1, None] * B[1] + kg[:, 2, None] * B[2]
    return (cart[:, 0] ** 2 + cart[:, 1] ** 2 + cart[:, 2] ** 2) / C_VASP


def kinetic_energy(k, g, recip: ReciprocalLattice) -> float:
    """Kinetic energy (eV) of the plane wave k + g."""
    return float(kinetic_energies(k, np.asarray(g)[None, :], recip)[0])


def max_hkl_index(recip: ReciprocalLattice, encut: float) -> tuple[int, int, int]:
    """
    Symmetric half-widths (n1, n2, n3) of the HKL bounding box.

    For each reciprocal axis independently, n_i is the smallest non-negative
    integer whose axis-aligned vector n_i·b_i has an energy above `encut`.
    The box [-n_i, n_i] is an envelope; the exact k+G test is applied later.
    """
    encut = float(encut)
    if not np.isfinite(encut):
        raise FormatError(f"energy cutoff is not finite: {encut!r}")
    # energy of the unit vector along each axis
    e_unit = np.einsum("ij,ij->i", recip.vectors, recip.vectors) / C_VASP
    bounds = []
    for e1 in e_unit:
        if e1 <= 0.0:
            raise FormatError("reciprocal basis vector has zero length")
        estimate = np.sqrt(max(encut, 0.0) / e1)
        if not estimate < _MAX_HALF_WIDTH:
            raise FormatError(f"energy cutoff {encut:g} eV needs an HKL half-width "
                              f"of ~{estimate:.3g}; cutoff or lattice is corrupt")
        # smallest n with n² e1 > encut, guarded against rounding
        n = int(np.floor(estimate))
        while n > 0 and (n - 1) ** 2 * e1 > encut:
            n -= 1
        while n ** 2 * e1 <= encut:
            n += 1
        bounds.append(n)
    return tuple(bounds)


def cell_parameters(real: RealLattice) -> tuple[float, ...]:
    """Return (a, b, c, alpha, beta, gamma) in Å and degrees."""
    return tuple(float(x) for x in cell_to_cellpar(real.vectors))


__all__ = [
    "RealLattice", "ReciprocalLattice",
    "reciprocal_of", "kinetic_energy", "kinetic_energies",
    "max_hkl_index", "cell_parameters",
]
