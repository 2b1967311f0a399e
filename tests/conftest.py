# Copyright (c) 2026 Chip contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures and helpers for the chip pytest suite.

import os
import sys

import pytest

# Ensure chip is importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from chipbuf import Buffer  # noqa: E402

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove CHIP_STYLE so a user's color scheme doesn't leak into tests."""
    monkeypatch.delenv("CHIP_STYLE", raising=False)
    yield


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ByteReader:
    """Byte source for rawterm.decode_key(). Returns b"" once 'data' runs
    out, like a raw-mode read that timed out."""

    def __init__(self, data):
        self.data = data
        self.pos = 0

    def __call__(self):
        c = self.data[self.pos : self.pos + 1]
        self.pos += len(c)
        return c


class FakeTerminal:
    """Stands in for rawterm.Terminal in controller tests.

    keys:
      Keys returned by read_key(), in order

    sizes:
      (rows, cols) pairs returned by successive query_geometry() calls. The
      last one is repeated.
    """

    def __init__(self, keys, sizes=((24, 80),)):
        self.keys = list(keys)
        self.sizes = list(sizes)
        self.writes = []
        self.entered = False
        self.exits = 0
        self.cleared = False

    def enter(self):
        self.entered = True

    def exit(self):
        self.exits += 1

    def query_geometry(self):
        if len(self.sizes) > 1:
            return self.sizes.pop(0)
        return self.sizes[0]

    def write(self, data):
        self.writes.append(data)

    def clear_screen(self):
        self.cleared = True

    def read_key(self):
        return self.keys.pop(0)


def make_buffer(*lines):
    """Return a Buffer holding 'lines' (str or bytes)."""
    buf = Buffer()
    for line in lines:
        if isinstance(line, str):
            line = line.encode()
        buf.append_row(line)
    return buf
