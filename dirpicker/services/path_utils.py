"""String-level path helpers shared by the backends and the session."""

from __future__ import annotations

import os

_SEPARATORS = "/" if os.sep == "/" else "/" + os.sep


def is_device_path(path: str, device_prefix: str) -> bool:
    if not device_prefix:
        return False
    return path == device_prefix.rstrip("/") or path.startswith(device_prefix)


def normalize_result_path(path: str, device_prefix: str = "") -> str:
    """Trim trailing separators, leaving the device root and one-character roots alone."""
    if not path:
        return path
    if device_prefix and path == device_prefix:
        return path
    if len(path) == 1:
        return path
    trimmed = path.rstrip(_SEPARATORS)
    return trimmed or path[:1]


def path_key(path: str, device_prefix: str = "") -> str:
    return normalize_result_path(path, device_prefix)


def has_prefix(path: str, prefix: str) -> bool:
    """True when ``path`` is ``prefix`` or lies underneath it."""
    if not prefix:
        return False
    norm_path = normalize_result_path(path)
    norm_prefix = normalize_result_path(prefix)
    if norm_path == norm_prefix:
        return True
    if norm_prefix[-1:] in _SEPARATORS:
        return norm_path.startswith(norm_prefix)
    return any(norm_path.startswith(norm_prefix + sep) for sep in _SEPARATORS)


def display_name(path: str) -> str:
    trimmed = path.rstrip(_SEPARATORS)
    if not trimmed:
        return path
    for sep in _SEPARATORS:
        trimmed = trimmed.rsplit(sep, 1)[-1]
    return trimmed or path
