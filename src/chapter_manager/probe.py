"""ffprobe wrapper for reading audio duration."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess

logger = logging.getLogger(__name__)


def ensure_ffprobe() -> str:
    """Return the path to ffprobe, or raise if not found."""
    path = shutil.which("ffprobe")
    if not path:
        raise RuntimeError(
            "ffprobe not found on PATH. Install ffmpeg: brew install ffmpeg"
        )
    return path


def probe_duration(filepath: str) -> float:
    """Return the duration of an audio file in seconds (0.0 if unknown)."""
    ffprobe = ensure_ffprobe()
    cmd = [
        ffprobe,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        filepath,
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout or "{}")

    try:
        duration = float(data.get("format", {}).get("duration", 0))
    except (TypeError, ValueError):
        duration = 0.0
    logger.debug("Duration of %s: %.3fs", filepath, duration)
    return duration
