import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bit_reader import BitReader  # noqa: E402
from bit_writer import BitWriter  # noqa: E402


@pytest.fixture()
def writer():
    """A 64-bit writer, enough for every scalar type."""
    return BitWriter(64)


@pytest.fixture()
def round_trip():
    """
    Write with ``write(writer)`` into a buffer of ``capacity`` bits, then
    hand back a reader over the snapshot.
    """

    def _round_trip(write, capacity: int = 128) -> BitReader:
        w = BitWriter(capacity)
        write(w)
        return BitReader(w.get_buffer())

    return _round_trip
