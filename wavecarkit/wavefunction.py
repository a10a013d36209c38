#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
wavefunction.py — In-memory container for decoded WAVECAR data
==============================================================
Holds everything recovered from one WAVECAR: lattice geometry, k-points,
band energies/occupancies and, for every (spin, k-point, band), the sparse
map from HKL index to plane-wave coefficient.

Layout
------
    Wavefunction
      ├── lattice / reciprocal / encut / bounds
      ├── bands[spin][k]            → KPointBands  (k-vector, npw, E, occ)
      └── planewaves[spin][k][band] → PlaneWaveBand (hkl (npw,3), coeffs (npw,))

All arrays are read-only once constructed.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property
from typing import NamedTuple

import numpy as np

from .geometry import RealLattice, ReciprocalLattice


def _frozen(arr, dtype) -> np.ndarray:
    out = np.array(arr, dtype=dtype, copy=True)
    out.setflags(write=False)
    return out


class Band(NamedTuple):
    energy: float
    occupancy: float


@dataclass(frozen=True, eq=False)
class KPointBands:
    """Header record of one (spin, k-point): k-vector, npw, band data."""
    kpoint: np.ndarray
    nplanewaves: int
    energies: np.ndarray
    occupancies: np.ndarray

    def __post_init__(self):
        kpt = _frozen(self.kpoint, np.float64)
        if kpt.shape != (3,):
            raise ValueError(f"k-point must have 3 components, got shape {kpt.shape}")
        en = _frozen(self.energies, np.float64)
        oc = _frozen(self.occupancies, np.float64)
        if en.shape != oc.shape or en.ndim != 1:
            raise ValueError("energies and occupancies must be 1-D arrays of equal length")
        object.__setattr__(self, "kpoint", kpt)
        object.__setattr__(self, "energies", en)
        object.__setattr__(self, "occupancies", oc)
        object.__setattr__(self, "nplanewaves", int(self.nplanewaves))

    def __len__(self) -> int:
        return len(self.energies)

    def __getitem__(self, iband: int) -> Band:
        return Band(float(self.energies[iband]), float(self.occupancies[iband]))

    def __iter__(self):
        for iband in range(len(self)):
            yield self[iband]


@dataclass(frozen=True, eq=False)
class PlaneWaveBand:
    """Coefficients of one band and the HKL index each one belongs to."""
    hkl: np.ndarray
    coeffs: np.ndarray

    def __post_init__(self):
        hkl = _frozen(self.hkl, np.int64).reshape(-1, 3)
        cv = _frozen(self.coeffs, np.complex64).reshape(-1)
        if len(hkl) != len(cv):
            raise ValueError(f"{len(hkl)} HKL indices for {len(cv)} coefficients")
        object.__setattr__(self, "hkl", hkl)
        object.__setattr__(self, "coeffs", cv)

    def __len__(self) -> int:
        return len(self.coeffs)

    @cached_property
    def _index(self) -> dict:
        return {tuple(int(x) for x in row): i for i, row in enumerate(self.hkl)}

    def __contains__(self, hkl) -> bool:
        return tuple(int(x) for x in hkl) in self._index

    def __getitem__(self, hkl) -> np.complex64:
        key = tuple(int(x) for x in hkl)
        try:
            return self.coeffs[self._index[key]]
        except KeyError:
            raise KeyError(f"HKL index {key} not in this band's basis") from None

    def norm(self) -> float:
        """sqrt(sum |C|^2)."""
        return float(np.sqrt(np.vdot(self.coeffs, self.coeffs).real))

    def normalized(self) -> "PlaneWaveBand":
        """Copy scaled so that sum |C|^2 == 1."""
        nrm = self.norm()
        if not nrm > 0:
            raise ValueError(f"bad normalization: ||C|| = {nrm}")
        return PlaneWaveBand(self.hkl, self.coeffs / nrm)

    def to_dense(self, bounds=None) -> np.ndarray:
        """
        Scatter the coefficients onto a (2n1+1, 2n2+1, 2n3+1) complex64 grid.
        Negative indices wrap (numpy style): dense[h, k, l] holds C(h, k, l).
        Without `bounds` the smallest box holding every index is used.
        """
        if bounds is None:
            bounds = np.abs(self.hkl).max(axis=0) if len(self.hkl) else (0, 0, 0)
        bounds = np.asarray(bounds, dtype=int)
        if len(self.hkl) and np.any(np.abs(self.hkl) > bounds):
            raise ValueError(f"HKL indices exceed bounds {tuple(bounds)}")
        dense = np.zeros(tuple(2 * bounds + 1), dtype=np.complex64)
        dense[tuple(self.hkl.T)] = self.coeffs
        return dense


class Wavefunction:
    """
    Decoded WAVECAR.

    Attributes:
        lattice (RealLattice): real-space cell and centering tag
        reciprocal (ReciprocalLattice): reciprocal basis (2π included)
        encut (float): plane-wave cutoff in eV
        bounds (tuple): HKL half-widths (n1, n2, n3) of the enumeration box
        bands (tuple): bands[spin][k] -> KPointBands
        planewaves (tuple): planewaves[spin][k][band] -> PlaneWaveBand
    """

    def __init__(self, lattice: RealLattice, reciprocal: ReciprocalLattice,
                 encut: float, bounds, bands, planewaves):
        self.lattice = lattice
        self.reciprocal = reciprocal
        self.encut = float(encut)
        self.bounds = tuple(int(n) for n in bounds)
        self.bands = tuple(tuple(per_spin) for per_spin in bands)
        self.planewaves = tuple(
            tuple(tuple(per_k) for per_k in per_spin) for per_spin in planewaves
        )
        if len(self.bands) != len(self.planewaves):
            raise ValueError("bands and planewaves disagree on the number of spins")

    # ------------------------------------------------------------------
    @property
    def nspin(self) -> int:
        return len(self.bands)

    @property
    def nkpts(self) -> int:
        return len(self.bands[0]) if self.bands else 0

    @property
    def nbands(self) -> int:
        return len(self.bands[0][0]) if self.nkpts else 0

    @property
    def kpoints(self) -> np.ndarray:
        """(nkpts, 3) k-points in reciprocal coordinates."""
        if not self.nkpts:
            return np.zeros((0, 3))
        return np.array([kb.kpoint for kb in self.bands[0]])

    @property
    def nplanewaves(self) -> np.ndarray:
        """(nkpts,) plane-wave counts."""
        return np.array([kb.nplanewaves for kb in self.bands[0]], dtype=int)

    @property
    def energies(self) -> np.ndarray:
        """(nspin, nkpts, nbands) band energies in eV."""
        return np.array([[kb.energies for kb in per_spin] for per_spin in self.bands])

    @property
    def occupations(self) -> np.ndarray:
        """(nspin, nkpts, nbands) occupancies."""
        return np.array([[kb.occupancies for kb in per_spin] for per_spin in self.bands])

    # ------------------------------------------------------------------
    def _check(self, isp: int, ik: int, iband: int | None = None) -> None:
        if not (0 <= isp < self.nspin):
            raise IndexError(f"spin index {isp} out of range (0..{self.nspin - 1})")
        if not (0 <= ik < self.nkpts):
            raise IndexError(f"k-point index {ik} out of range (0..{self.nkpts - 1})")
        if iband is not None and not (0 <= iband < self.nbands):
            raise IndexError(f"band index {iband} out of range (0..{self.nbands - 1})")

    def planewave(self, isp: int, ik: int, iband: int) -> PlaneWaveBand:
        self._check(isp, ik, iband)
        return self.planewaves[isp][ik][iband]

    def band(self, isp: int, ik: int, iband: int) -> Band:
        self._check(isp, ik, iband)
        return self.bands[isp][ik][iband]

    def bands_in_window(self, isp: int, ik: int, center: float,
                        half_width: float) -> np.ndarray:
        """Band indices with energy in [center - half_width, center + half_width]."""
        self._check(isp, ik)
        en = self.bands[isp][ik].energies
        return np.where((en >= center - half_width) & (en <= center + half_width))[0]

    def __repr__(self) -> str:
        return (f"Wavefunction(nspin={self.nspin}, nkpts={self.nkpts}, "
                f"nbands={self.nbands}, encut={self.encut:.3f}, bounds={self.bounds}, "
                f"centering='{self.lattice.centering}')")


__all__ = ["Band", "KPointBands", "PlaneWaveBand", "Wavefunction"]
