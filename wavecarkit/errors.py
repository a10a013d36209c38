#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
errors.py — Exception types for wavecarkit
==========================================
`FormatError` is raised for every structural problem found while decoding a
WAVECAR: unsupported RTAG, truncated stream, record-boundary overruns,
non-integral count fields, singular lattices and G-vector enumeration that
runs out of candidates.  Failures of the underlying stream (`OSError`) are
never wrapped.

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""

from __future__ import annotations


class FormatError(ValueError):
    """The byte stream is not a valid RTAG=45200 WAVECAR."""

    def __init__(self, message: str, *, record: int | None = None,
                 spin: int | None = None, kpoint: int | None = None,
                 band: int | None = None):
        self.record = record
        self.spin = spin
        self.kpoint = kpoint
        self.band = band

        ctx = []
        if record is not None:
            ctx.append(f"record={record}")
        if spin is not None:
            ctx.append(f"spin={spin}")
        if kpoint is not None:
            ctx.append(f"kpoint={kpoint}")
        if band is not None:
            ctx.append(f"band={band}")
        self.reason = message
        if ctx:
            message = f"{message} ({', '.join(ctx)})"
        super().__init__(message)

    def with_context(self, **ctx) -> "FormatError":
        """Return a copy carrying extra context; existing fields win."""
        merged = {
            "record": self.record, "spin": self.spin,
            "kpoint": self.kpoint, "band": self.band,
        }
        for key, val in ctx.items():
            if merged.get(key) is None:
                merged[key] = val
        return FormatError(self.reason, **merged)


__all__ = ["FormatError"]
