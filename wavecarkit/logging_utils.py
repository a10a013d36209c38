#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
logging_utils.py — Centralized logging and runtime banner for wavecarkit
========================================================================
Standard logger setup for the `wavecarkit` command-line tool.  Library
modules only create named loggers (`wavecarkit.*`) and stay silent; this
module attaches the handlers when the tool runs.

Main functions
---------------
- **setup_logger(name='wavecarkit', logfile=None, level=logging.INFO)**
    Console handler on stdout plus an optional UTF-8 file handler.  With
    ``logfile='auto'`` the file is named `run_YYYY-MM-DD_HHMMSS.log`.

- **banner(logger)**
    Start banner for a decode run.

Logging format
---------------
- **Message format:**  `%(asctime)s  %(levelname)8s: %(message)s`
- **Timestamp format:** `%Y-%m-%d %H:%M:%S`

License:
    MIT License (see LICENSE file)

Version:
    1.0.0
"""


from __future__ import annotations
import logging, sys, datetime

# Message format uses logging fields; asctime will be formatted by DATE_FMT below.
LOG_FMT  = "%(asctime)s  %(levelname)8s: %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = "wavecarkit", logfile: str | None = None,
                 level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Console handler to stdout
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(LOG_FMT, DATE_FMT))

    # Reset and attach
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.addHandler(ch)

    if logfile:
        if logfile == "auto":
            stamp = datetime.datetime.now().strftime("%Y-%m-%d_%H%M%S")
            logfile = f"run_{stamp}.log"
        fh = logging.FileHandler(logfile, mode="w", encoding="utf-8")
        fh.setFormatter(logging.Formatter(LOG_FMT, DATE_FMT))
        logger.addHandler(fh)
    return logger


def banner(logger: logging.Logger) -> None:
    logger.info("═" * 70)
    logger.info(" Decoding VASP WAVECAR (RTAG 45200) ")
    logger.info("═" * 70)
