
from .records import RecordReader, RecordWriter
from .wavecar import (
    read_wavecar, read_wavecar_file, write_wavecar, required_record_length
)

__all__ = [
    "RecordReader", "RecordWriter",
    "read_wavecar", "read_wavecar_file", "write_wavecar", "required_record_length",
]
