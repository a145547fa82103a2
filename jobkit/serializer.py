"""Compact, transport-safe encoding of nested primitive data.

Values are dumped as YAML, then base64 encoded with padding and line breaks
stripped so the result can be embedded in a URL path segment.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

import yaml

from jobkit.errors import DecodeFailure


def b64_encode(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"b64_encode expects bytes or str (type={type(data).__name__})")
    return base64.b64encode(bytes(data)).decode("ascii").replace("\n", "").replace("=", "")


def b64_decode(string: str) -> bytes:
    # '~' stood in for '/' in older URLs.
    normalized = string.replace("~", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized)
    except (binascii.Error, ValueError) as exc:
        raise DecodeFailure(f"couldn't base64 decode {string!r} - got {exc}") from exc


def yaml_encode(value: Any) -> str:
    # Non-ASCII is escaped: raw NEL, LS and PS would be folded as line breaks on load.
    dumped = yaml.safe_dump(value, default_flow_style=True, sort_keys=False, width=float("inf"))
    return b64_encode(dumped.encode("utf-8"))


def yaml_decode(string: str | None) -> Any:
    if string is None or string == "":
        raise DecodeFailure("input is blank")
    if not isinstance(string, str):
        raise DecodeFailure(f"input must be a string (type={type(string).__name__})")

    raw = b64_decode(string)
    try:
        return yaml.safe_load(raw)
    except (yaml.YAMLError, UnicodeDecodeError, TypeError, ValueError) as exc:
        raise DecodeFailure(f"couldn't decode {string} - got {exc}") from exc


encode = yaml_encode
decode = yaml_decode
