import io
import os
import tempfile
import unittest

import numpy as np

from wavecarkit.errors import FormatError
from wavecarkit.io.wavecar import (
    read_wavecar, read_wavecar_file, write_wavecar, required_record_length,
)
from wavecar_fixtures import (
    CUBIC, TRICLINIC, SEVEN_WAVE_ENCUT, make_wavefunction, encode, raw_wavecar,
    FailingStream,
)
from wavecarkit.wavefunction import KPointBands, PlaneWaveBand, Wavefunction

KPOINTS = ((0.0, 0.0, 0.0), (0.25, 0.0, 0.0), (0.25, 0.25, -0.5))


class TestReadWavecar(unittest.TestCase):

    def test_seven_coefficient_file(self):
        wfc = read_wavecar(raw_wavecar())
        self.assertEqual(wfc.bounds, (2, 2, 2))
        pw = wfc.planewave(0, 0, 0)
        self.assertEqual([tuple(r) for r in pw.hkl.tolist()], [
            (0, 0, -1), (0, 0, 0), (1, 0, 0), (-1, 0, 0),
            (0, 1, 0), (0, -1, 0), (0, 0, 1),
        ])
        np.testing.assert_array_equal(pw.coeffs, np.arange(7, dtype=np.complex64))
        self.assertEqual(pw[(0, 0, 0)], np.complex64(1))
        band = wfc.band(0, 0, 0)
        self.assertEqual((band.energy, band.occupancy), (0.0, 1.0))

    def test_round_trip_is_exact(self):
        src = make_wavefunction(lattice=TRICLINIC, encut=45.0, kpoints=KPOINTS,
                                nbands=4, nspin=2, seed=3)
        out = read_wavecar(encode(src))
        self.assertEqual((out.nspin, out.nkpts, out.nbands), (2, 3, 4))
        self.assertEqual(out.encut, src.encut)
        self.assertEqual(out.bounds, src.bounds)
        np.testing.assert_array_equal(out.lattice.vectors, src.lattice.vectors)
        np.testing.assert_array_equal(out.kpoints, src.kpoints)
        np.testing.assert_array_equal(out.energies, src.energies)
        np.testing.assert_array_equal(out.occupations, src.occupations)
        for isp in range(2):
            for ik in range(3):
                for ib in range(4):
                    a, b = src.planewave(isp, ik, ib), out.planewave(isp, ik, ib)
                    np.testing.assert_array_equal(a.hkl, b.hkl)
                    np.testing.assert_array_equal(a.coeffs, b.coeffs)

    def test_padded_records(self):
        src = make_wavefunction(kpoints=KPOINTS[:2], nbands=2)
        recl = required_record_length(src) + 40
        out = read_wavecar(encode(src, record_length=recl))
        np.testing.assert_array_equal(out.energies, src.energies)

    def test_counts_and_ordering(self):
        wfc = read_wavecar(encode(make_wavefunction(
            lattice=TRICLINIC, encut=45.0, kpoints=KPOINTS, nbands=3, nspin=2)))
        bounds = np.array(wfc.bounds)
        for ik in range(wfc.nkpts):
            ref = wfc.planewave(0, ik, 0).hkl
            for isp in range(wfc.nspin):
                self.assertEqual(wfc.bands[isp][ik].nplanewaves, len(ref))
                for ib in range(wfc.nbands):
                    hkl = wfc.planewave(isp, ik, ib).hkl
                    self.assertEqual(len(hkl), wfc.bands[isp][ik].nplanewaves)
                    self.assertTrue(np.all(np.abs(hkl) <= bounds))
                    np.testing.assert_array_equal(hkl, ref)

    def test_stream_left_open(self):
        buf = raw_wavecar()
        read_wavecar(buf)
        self.assertFalse(buf.closed)

    def test_centering_is_recorded(self):
        wfc = read_wavecar(raw_wavecar(), centering="i")
        self.assertEqual(wfc.lattice.centering, "I")


class TestReadWavecarErrors(unittest.TestCase):

    def test_unsupported_tag(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(raw_wavecar(rtag=45210))
        self.assertIn("Unsupported format: format value is 45210", str(ctx.exception))

    def test_bad_spin_count(self):
        with self.assertRaises(FormatError):
            read_wavecar(raw_wavecar(nspin=3))

    def test_fractional_plane_wave_count(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(raw_wavecar(nplw=6.5, ncoeffs=6))
        self.assertIn("plane_wave_count", str(ctx.exception))
        self.assertEqual(ctx.exception.spin, 0)
        self.assertEqual(ctx.exception.kpoint, 0)

    def test_too_many_plane_waves(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(raw_wavecar(nplw=8))
        self.assertIn("exhausted", str(ctx.exception))
        self.assertEqual(ctx.exception.band, 0)

    def test_truncated_file(self):
        src = make_wavefunction(kpoints=KPOINTS[:2], nbands=2, nspin=2)
        data = encode(src).getvalue()
        recl = required_record_length(src)
        # record 12 is band 0 of (spin 1, k-point 1); keep 8 bytes of it
        cut = io.BytesIO(data[:12 * recl + 8])
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(cut)
        err = ctx.exception
        self.assertEqual((err.spin, err.kpoint, err.band), (1, 1, 0))
        self.assertIsNotNone(err.record)

    def test_missing_kpoint_block(self):
        # two k-points declared, one written
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(raw_wavecar(nkpts=2))
        self.assertEqual(ctx.exception.kpoint, 1)

    def test_spin_kpoint_mismatch(self):
        src = make_wavefunction(kpoints=KPOINTS[:1], nbands=1, nspin=2)
        recl = required_record_length(src)
        data = bytearray(encode(src).getvalue())
        # kx of spin 2 sits one float64 into record 4
        data[4 * recl + 8:4 * recl + 16] = np.array([0.5], dtype="<f8").tobytes()
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(io.BytesIO(bytes(data)))
        self.assertEqual(ctx.exception.spin, 1)

    def test_header_record_overrun(self):
        data = bytearray(raw_wavecar(record_length=256).getvalue())
        # claim 40 bands: their triplets no longer fit in the 256-byte header
        data[256 + 8:256 + 16] = np.array([40.0], dtype="<f8").tobytes()
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(io.BytesIO(bytes(data)))
        self.assertIn("record boundary", str(ctx.exception))
        self.assertEqual(ctx.exception.record, 2)

    def _patched_record1(self, field, value):
        data = bytearray(raw_wavecar(record_length=256).getvalue())
        data[256 + 8 * field:256 + 8 * field + 8] = np.array([value], dtype="<f8").tobytes()
        return io.BytesIO(bytes(data))

    def test_inflated_kpoint_count(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(self._patched_record1(0, 1e13))
        self.assertEqual(ctx.exception.kpoint, 1)
        self.assertIn("end of file", str(ctx.exception))

    def test_inflated_band_count(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(self._patched_record1(1, 1e13))
        self.assertIn("record boundary", str(ctx.exception))

    def test_corrupt_cutoff(self):
        with self.assertRaises(FormatError) as ctx:
            read_wavecar(self._patched_record1(2, 1e12))
        self.assertIn("energy cutoff", str(ctx.exception))
        self.assertEqual(ctx.exception.record, 1)

        with self.assertRaises(FormatError):
            read_wavecar(self._patched_record1(2, 1e300))

    def test_stream_errors_pass_through(self):
        data = raw_wavecar(record_length=256).getvalue()
        # fails inside the first k-point header
        with self.assertRaises(OSError) as ctx:
            read_wavecar(FailingStream(data, fail_at=2 * 256 + 8))
        self.assertNotIsInstance(ctx.exception, FormatError)


class TestWavecarFiles(unittest.TestCase):

    def test_read_from_disk(self):
        src = make_wavefunction(kpoints=KPOINTS[:2], nbands=2)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "WAVECAR")
            with open(path, "wb") as fh:
                write_wavecar(src, fh)
            out = read_wavecar_file(path)
        np.testing.assert_array_equal(out.energies, src.energies)

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                read_wavecar_file(os.path.join(tmp, "WAVECAR"))

    def test_writer_rejects_short_records(self):
        src = make_wavefunction()
        with self.assertRaises(ValueError):
            write_wavecar(src, io.BytesIO(), record_length=required_record_length(src) - 8)

    def test_writer_returns_record_length(self):
        src = make_wavefunction(lattice=CUBIC, encut=SEVEN_WAVE_ENCUT)
        buf = io.BytesIO()
        recl = write_wavecar(src, buf)
        # rec0, rec1, header, one band
        self.assertEqual(len(buf.getvalue()), 4 * recl)
        self.assertEqual(recl, 12 * 8)

    def test_record_length_covers_every_spin(self):
        base = make_wavefunction()
        npw = 20
        spin1 = KPointBands([0.0, 0.0, 0.0], npw, [-1.0], [1.0])
        pw1 = PlaneWaveBand(np.zeros((npw, 3), dtype=int), np.ones(npw, dtype=np.complex64))
        wfc = Wavefunction(base.lattice, base.reciprocal, base.encut, base.bounds,
                           [base.bands[0], [spin1]], [base.planewaves[0], [[pw1]]])
        self.assertEqual(required_record_length(wfc), npw * 8)
        buf = io.BytesIO()
        recl = write_wavecar(wfc, buf)
        self.assertEqual(recl, npw * 8)
        # rec0, rec1, then header + one band per spin
        self.assertEqual(len(buf.getvalue()), 6 * recl)


if __name__ == "__main__":
    unittest.main()
