import io
import unittest

import numpy as np

from wavecarkit.errors import FormatError
from wavecarkit.io.records import RecordReader, RecordWriter
from wavecar_fixtures import FailingStream


def _records(record_length, *payloads):
    buf = io.BytesIO()
    w = RecordWriter(buf, record_length)
    for values in payloads:
        w.next_record()
        w.write_float64(*values)
    w.close()
    buf.seek(0)
    return buf


class TestRecordReader(unittest.TestCase):

    def test_discover_and_seek(self):
        buf = _records(32, (32, 1, 45200), (7, 8, 9))
        rr = RecordReader(buf)
        self.assertEqual(rr.discover_record_length(), 32)
        rr.seek_record(1)
        self.assertEqual(rr.position, 32)
        self.assertEqual(rr.read_count("a"), 7)
        self.assertEqual(rr.read_scalar(), 8.0)
        rr.skip(8)
        self.assertEqual(rr.position, 56)

    def test_logs_under_module_logger(self):
        rr = RecordReader(_records(32, (32, 1, 45200)))
        with self.assertLogs("wavecarkit.records", level="DEBUG") as logs:
            rr.discover_record_length()
        self.assertIn("record length: 32 bytes", logs.output[0])

    def test_next_record_is_sequential(self):
        buf = _records(32, (32, 1, 45200), (1,), (2,))
        rr = RecordReader(buf)
        rr.discover_record_length()
        self.assertEqual([rr.next_record() for _ in range(3)], [0, 1, 2])
        self.assertEqual(rr.read_scalar(), 2.0)

    def test_forward_only(self):
        buf = _records(32, (32, 1, 45200), (1,))
        rr = RecordReader(buf)
        rr.discover_record_length()
        rr.seek_record(1)
        with self.assertRaises(ValueError):
            rr.seek_record(0)
        with self.assertRaises(ValueError):
            rr.seek_record(1)

    def test_read_past_record_boundary(self):
        buf = _records(32, (32, 1, 45200), (1, 2, 3, 4))
        rr = RecordReader(buf)
        rr.discover_record_length()
        rr.seek_record(1)
        rr.read_float64(3)
        with self.assertRaises(FormatError) as ctx:
            rr.read_float64(2)
        self.assertEqual(ctx.exception.record, 1)
        self.assertIn("record boundary", str(ctx.exception))

    def test_read_past_end_of_stream(self):
        buf = _records(32, (32, 1, 45200), (1, 2))
        data = buf.getvalue()[:40]
        rr = RecordReader(io.BytesIO(data))
        rr.discover_record_length()
        rr.seek_record(1)
        rr.read_scalar()
        with self.assertRaises(FormatError) as ctx:
            rr.read_scalar()
        self.assertIn("end of file", str(ctx.exception))

    def test_empty_stream(self):
        with self.assertRaises(FormatError):
            RecordReader(io.BytesIO(b"")).discover_record_length()

    def test_record_length_must_be_integral(self):
        buf = io.BytesIO(np.array([32.5, 1, 45200], dtype="<f8").tobytes())
        with self.assertRaises(FormatError) as ctx:
            RecordReader(buf).discover_record_length()
        self.assertIn("record_length", str(ctx.exception))

    def test_record_length_too_small(self):
        buf = io.BytesIO(np.array([16, 1, 45200], dtype="<f8").tobytes())
        with self.assertRaises(FormatError):
            RecordReader(buf).discover_record_length()

    def test_read_count_rejects_fraction_and_negative(self):
        buf = _records(32, (32, 1, 45200), (3.25, -2.0, np.nan))
        rr = RecordReader(buf)
        rr.discover_record_length()
        rr.seek_record(1)
        for _ in range(3):
            with self.assertRaises(FormatError) as ctx:
                rr.read_count("plane_wave_count")
            self.assertIn("plane_wave_count", str(ctx.exception))

    def test_complex64(self):
        buf = io.BytesIO()
        w = RecordWriter(buf, 32)
        w.next_record()
        w.write_float64(32, 1, 45200)
        w.next_record()
        vals = np.array([1 + 2j, -3.5 + 0.25j], dtype=np.complex64)
        w.write_complex64(vals)
        w.close()
        buf.seek(0)
        rr = RecordReader(buf)
        rr.discover_record_length()
        rr.seek_record(1)
        out = rr.read_complex64(2)
        self.assertEqual(out.dtype, np.complex64)
        np.testing.assert_array_equal(out, vals)

    def test_stream_errors_pass_through(self):
        data = _records(32, (32, 1, 45200), (1, 2, 3)).getvalue()
        rr = RecordReader(FailingStream(data, fail_at=40))
        rr.discover_record_length()
        rr.seek_record(1)
        rr.read_scalar()
        with self.assertRaises(OSError) as ctx:
            rr.read_scalar()
        self.assertNotIsInstance(ctx.exception, FormatError)

        with self.assertRaises(OSError):
            RecordReader(FailingStream(data, fail_at=0)).discover_record_length()


class TestRecordWriter(unittest.TestCase):

    def test_padding(self):
        buf = _records(40, (40, 1, 45200), (1.0,))
        self.assertEqual(len(buf.getvalue()), 80)

    def test_overflow(self):
        w = RecordWriter(io.BytesIO(), 24)
        w.next_record()
        w.write_float64(1, 2, 3)
        with self.assertRaises(ValueError):
            w.write_float64(4)

    def test_stream_left_open(self):
        buf = io.BytesIO()
        w = RecordWriter(buf, 24)
        w.next_record()
        w.close()
        self.assertFalse(buf.closed)


if __name__ == "__main__":
    unittest.main()
