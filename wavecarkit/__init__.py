# wavecarkit/__init__.py
__version__ = "0.1.0"

from .errors import FormatError
from .geometry import (
    RealLattice, ReciprocalLattice, reciprocal_of, kinetic_energy, max_hkl_index
)
from .gvectors import HKLOdometer, enumerate_gvectors
from .wavefunction import Band, KPointBands, PlaneWaveBand, Wavefunction
from .io import read_wavecar, read_wavecar_file, write_wavecar

__all__ = [
    "FormatError",
    "RealLattice", "ReciprocalLattice", "reciprocal_of", "kinetic_energy", "max_hkl_index",
    "HKLOdometer", "enumerate_gvectors",
    "Band", "KPointBands", "PlaneWaveBand", "Wavefunction",
    "read_wavecar", "read_wavecar_file", "write_wavecar",
    "__version__",
]
