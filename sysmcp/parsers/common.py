from __future__ import annotations

import math
import re

GB = 1024 * 1024 * 1024

_NUMBER_RE = re.compile(r"(\d+\.?\d*)")
_INT_RE = re.compile(r"(\d+)")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def first_number(text: str | None) -> float | None:
    """First unsigned decimal number in ``text``."""
    if not text:
        return None
    match = _NUMBER_RE.search(text)
    return float(match.group(1)) if match else None


def first_int(text: str | None) -> int | None:
    if not text:
        return None
    match = _INT_RE.search(text)
    return int(match.group(1)) if match else None


def leading_int(text: str | None, default: int = 0) -> int:
    """Integer prefix of ``text`` (``"42 MB"`` -> 42), else ``default``."""
    if not text:
        return default
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else default


def parse_float(text: str | None) -> float | None:
    """Float prefix of ``text``, or ``None`` when it does not start with one."""
    if not text:
        return None
    match = _LEADING_FLOAT_RE.match(text)
    return float(match.group(1)) if match else None


def leading_float(text: str | None, default: float = 0.0) -> float:
    value = parse_float(text)
    return default if value is None else value


def bytes_to_gb(value: float) -> float:
    return round(value / GB, 2)


def thermal_state(temperature: float) -> str:
    if temperature < 60:
        return "Normal"
    if temperature < 80:
        return "Warm"
    return "Hot"


def signal_quality(rssi: int) -> int:
    """Map a Wi-Fi RSSI (dBm) onto a 0-100 quality bucket."""
    if rssi >= -50:
        return 100
    if rssi >= -60:
        return 80
    if rssi >= -70:
        return 60
    if rssi >= -80:
        return 40
    if rssi >= -90:
        return 20
    return 0


def channel_to_frequency(channel: int) -> int:
    if 1 <= channel <= 14:
        return 2412 + (channel - 1) * 5
    if channel >= 36:
        return 5180 + (channel - 36) * 5
    return 0


def round_half_up(value: float) -> int:
    """Integer rounding with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))
