"""Shared test fixtures."""

from __future__ import annotations

import base64
import os
import tempfile

import pytest

# Smallest valid PNG: a 1x1 transparent pixel.
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA"
    "60e6kgAAAABJRU5ErkJggg=="
)

# One MPEG-1 Layer III frame header followed by silence.
_FRAME = b"\xff\xfb\x90\x64" + b"\x00" * 413


@pytest.fixture
def tmp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def make_mp3(tmp_dir):
    """Factory fixture that writes small untagged MP3 files."""

    def _make(filename: str, frames: int = 20) -> str:
        path = os.path.join(tmp_dir, filename)
        with open(path, "wb") as f:
            f.write(_FRAME * frames)
        return path

    return _make


@pytest.fixture
def png_file(tmp_dir):
    path = os.path.join(tmp_dir, "cover.png")
    with open(path, "wb") as f:
        f.write(PNG_BYTES)
    return path


@pytest.fixture
def corrupt_mp3(tmp_dir):
    """An MP3 whose ID3 header announces frames that are not there."""
    path = os.path.join(tmp_dir, "corrupt.mp3")
    with open(path, "wb") as f:
        f.write(b"ID3\x04\x00\x00\x00\x00\x10\x00" + b"\xff" * 40)
    return path
