"""Utility helpers for the Senpai Anime service."""

from __future__ import annotations

import random
import re
import time
from pathlib import PurePath


LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9.-]")
EPISODE_RE = re.compile(
    r"[Ee]pisode\s*(\d+)|[Ee]p\s*(\d+)|[Ee]\s*(\d+)|S\d+E(\d+)"
)
MEBIBYTE = 1024 * 1024


def parse_int(value: object) -> int | None:
    """Parse the leading integer of ``value``.

    ``"12"`` and ``"12b"`` both give 12, floats are truncated and anything
    without leading digits gives ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    match = LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def format_mebibytes(size_bytes: int) -> str:
    """Return ``size_bytes`` in MiB with two decimals, e.g. ``"12.50 MB"``."""

    return f"{size_bytes / MEBIBYTE:.2f} MB"


def sanitize_filename(name: str) -> str:
    """Replace anything outside ``[a-zA-Z0-9.-]`` with underscores."""

    return UNSAFE_FILENAME_RE.sub("_", PurePath(name).name)


def unique_filename(original_name: str, *, now_ms: int | None = None) -> str:
    """Build a collision-resistant storage name keeping the original extension."""

    path = PurePath(sanitize_filename(original_name) or "upload")
    suffix = path.suffix
    stem = path.name[: -len(suffix)] if suffix else path.name
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    nonce = random.randint(0, 10**9)
    return f"{stem}-{stamp}-{nonce}{suffix}"


def detect_episode_number(filename: str) -> int | None:
    """Guess the episode number from names like ``Show Ep 3.mp4`` or ``S01E07``."""

    match = EPISODE_RE.search(filename)
    if not match:
        return None
    for group in match.groups():
        if group:
            return int(group)
    return None
