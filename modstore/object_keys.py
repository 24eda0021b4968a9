"""Parsing of object-store keys laid out as ``module/version/file``."""

from __future__ import annotations

import re
from urllib.parse import unquote

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _path_unescape(text: str) -> str:
    if _BAD_ESCAPE.search(text):
        raise ValueError(f"invalid escape in {text!r}")
    return unquote(text)


def extract_key(object_key: str) -> tuple[str, str, str]:
    """Split an object key into its unescaped key, module and version.

    The version is the second-to-last path segment. Keys that cannot be
    unescaped are used as they are.
    """
    try:
        key = _path_unescape(object_key)
    except ValueError:
        key = object_key

    parts = key.split("/")
    if len(parts) < 2:
        raise ValueError(f"object key {object_key!r} has no version segment")
    version = parts[-2]
    module = key.replace(version, "").replace("//.info", "")
    return key, module, version