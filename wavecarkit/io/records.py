#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
records.py — Fixed-length record access for WAVECAR streams
===========================================================
A WAVECAR is a Fortran direct-access file: every record occupies exactly
`record_length` bytes, record *i* starts at byte ``i * record_length`` and
the payload of a record may be shorter than the record itself (the rest is
padding).  All positions used by the decoder go through `RecordReader`.

Main components
----------------
- **RecordReader**
    • Discovers the record length from the first float64 of record 0.
    • Visits records strictly forward (`seek_record`, `next_record`).
    • Reads float64 scalars, exact-integer float64 fields, complex64 arrays
      and skips scalar-sized gaps.
    • Raises `FormatError` on a read past the record boundary or past EOF.

- **RecordWriter**
    Inverse of the reader used by the reference encoder: writes one record at
    a time and zero-pads it to `record_length`.

All values are little-endian, matching files written on x86 machines.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations
import logging

import numpy as np

from ..constants import FLOAT64_BYTES, COMPLEX64_BYTES
from ..errors import FormatError

logger = logging.getLogger("wavecarkit.records")

F64 = np.dtype("<f8")
C64 = np.dtype("<c8")


class RecordReader:
    """
    Forward-only reader over a seekable binary stream of fixed-size records.

    The stream is borrowed: the reader never closes it.
    """

    def __init__(self, stream, record_length: int | None = None):
        self._fh = stream
        self.record_length = record_length
        self.record = None          # index of the current record
        self._offset = 0            # bytes consumed inside the current record

    # ------------------------------------------------------------------
    #  Positioning
    # ------------------------------------------------------------------
    def discover_record_length(self) -> int:
        """
        Read the first float64 of record 0 and use it as the record length
        in bytes.  The stream is left positioned at the start of record 0.
        """
        self._fh.seek(0)
        raw = self._fh.read(FLOAT64_BYTES)
        if len(raw) < FLOAT64_BYTES:
            raise FormatError("WAVECAR is empty or truncated in the first record",
                              record=0)
        value = float(np.frombuffer(raw, dtype=F64)[0])
        recl = _as_count(value, "record_length", record=0)
        # record 0 holds three float64 values
        if recl < 3 * FLOAT64_BYTES:
            raise FormatError(f"record length {recl} bytes is too small", record=0)
        self.record_length = recl
        self.record = None
        self._fh.seek(0)
        logger.debug(f"[RecordReader] record length: {recl} bytes")
        return recl

    def seek_record(self, index: int) -> None:
        """Position the stream at the start of record `index`."""
        if self.record_length is None:
            raise RuntimeError("record length unknown; call discover_record_length() first")
        if index < 0:
            raise ValueError(f"record index must be non-negative, got {index}")
        if self.record is not None and index <= self.record:
            raise ValueError(
                f"records are read forward only (current={self.record}, requested={index})")
        self._fh.seek(index * self.record_length)
        self.record = index
        self._offset = 0

    def next_record(self) -> int:
        """Advance to the following record and return its index."""
        self.seek_record(0 if self.record is None else self.record + 1)
        return self.record

    @property
    def position(self) -> int:
        """Absolute byte offset of the next read."""
        return self.record * self.record_length + self._offset

    # ------------------------------------------------------------------
    #  Typed reads
    # ------------------------------------------------------------------
    def _read(self, nbytes: int, what: str) -> bytes:
        if self.record is None:
            raise RuntimeError("no record selected; call seek_record() first")
        if self._offset + nbytes > self.record_length:
            raise FormatError(
                f"reading {what} ({nbytes} bytes at offset {self._offset}) runs past "
                f"the {self.record_length}-byte record boundary",
                record=self.record)
        buf = self._fh.read(nbytes)
        if len(buf) < nbytes:
            raise FormatError(
                f"unexpected end of file reading {what}: wanted {nbytes} bytes at "
                f"byte {self.position}, got {len(buf)}. WAVECAR truncated?",
                record=self.record)
        self._offset += nbytes
        return buf

    def read_float64(self, count: int = 1) -> np.ndarray:
        buf = self._read(count * FLOAT64_BYTES, f"{count} float64")
        return np.frombuffer(buf, dtype=F64).astype(np.float64)

    def read_scalar(self) -> float:
        return float(self.read_float64(1)[0])

    def read_count(self, name: str) -> int:
        """Read a float64 field that encodes a non-negative integer."""
        return _as_count(self.read_scalar(), name, record=self.record)

    def read_complex64(self, count: int) -> np.ndarray:
        buf = self._read(count * COMPLEX64_BYTES, f"{count} complex64 coefficients")
        return np.frombuffer(buf, dtype=C64).astype(np.complex64)

    def skip(self, nbytes: int) -> None:
        """Skip a gap inside the current record (boundary-checked)."""
        self._read(nbytes, f"a {nbytes}-byte gap")


def _as_count(value: float, name: str, *, record: int | None = None) -> int:
    """Validate that a float64 header field holds an exact non-negative integer."""
    if not np.isfinite(value) or value < 0 or value != np.floor(value):
        raise FormatError(
            f"field '{name}' must hold a non-negative integer, found {value!r}",
            record=record)
    return int(value)


class RecordWriter:
    """
    Write fixed-length records; every record is zero-padded to
    `record_length` bytes when the next one starts or on `close()`.
    """

    def __init__(self, stream, record_length: int):
        if record_length < 3 * FLOAT64_BYTES:
            raise ValueError(f"record length {record_length} bytes is too small")
        self._fh = stream
        self.record_length = int(record_length)
        self.record = None
        self._offset = 0

    def next_record(self) -> int:
        self._pad()
        self.record = 0 if self.record is None else self.record + 1
        self._offset = 0
        return self.record

    def _write(self, buf: bytes) -> None:
        if self.record is None:
            raise RuntimeError("no record started; call next_record() first")
        if self._offset + len(buf) > self.record_length:
            raise ValueError(
                f"record {self.record} overflows: {self._offset + len(buf)} bytes "
                f"> record length {self.record_length}")
        self._fh.write(buf)
        self._offset += len(buf)

    def write_float64(self, *values) -> None:
        self._write(np.asarray(values, dtype=F64).tobytes())

    def write_complex64(self, values) -> None:
        self._write(np.ascontiguousarray(values, dtype=C64).tobytes())

    def write_gap(self, nbytes: int) -> None:
        self._write(bytes(nbytes))

    def _pad(self) -> None:
        if self.record is not None and self._offset < self.record_length:
            self._fh.write(bytes(self.record_length - self._offset))
            self._offset = self.record_length

    def close(self) -> None:
        """Pad the last record; the stream itself stays open."""
        self._pad()


__all__ = ["RecordReader", "RecordWriter"]
