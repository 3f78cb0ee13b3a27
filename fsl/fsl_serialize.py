from __future__ import annotations

import json
import math
import os
from typing import Any, Optional

import yaml

from fsl.fsl_datatypes import ScriptSyntaxError


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode(encoding or 'utf-8', errors='replace')
    if isinstance(data, str):
        return data
    return str(data)


def _reject_constant(name: str):
    # json.loads accepts NaN/Infinity by default; script documents may not.
    raise ValueError(f"invalid literal {name!r}")


def _json_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ScriptSyntaxError(f"cannot parse JSON: number {text} out of range")
    return value


def _json_int(text: str) -> int:
    # Numbers are float64 values; an integer literal must fit one.
    if math.isinf(float(text)):
        raise ScriptSyntaxError(f"cannot parse JSON: number {text} out of range")
    return int(text)


def detect_format(path: Optional[str] = None, data_hint: Optional[str] = None) -> str:
    """
    Returns a canonical format name among: 'json', 'yaml'.
    The file suffix decides first; without one, JSON is assumed.
    """
    if path:
        ext = os.path.splitext(path)[1].lower()
        if ext in (".yaml", ".yml"):
            return 'yaml'
        if ext == ".json":
            return 'json'
    if data_hint is not None:
        s = data_hint.lstrip()
        if s and not s.startswith(('{', '[')) and ':' in s:
            return 'yaml'
    return 'json'


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                fmt: Optional[str] = None,
                encoding: Optional[str] = None) -> Any:
    """
    Convert raw script data (bytes/string) to plain dict/list/scalars.
    Supported fmt: 'json', 'yaml'. If fmt is None the data is sniffed.
    Malformed documents raise ScriptSyntaxError.
    """
    text = _norm_text(data, encoding=encoding)
    f = (fmt or detect_format(data_hint=text)).lower()
    if f == 'json':
        try:
            return json.loads(
                text,
                parse_constant=_reject_constant,
                parse_float=_json_float,
                parse_int=_json_int,
            )
        except ValueError as e:
            raise ScriptSyntaxError(f"cannot parse JSON: {e}") from e
    if f == 'yaml':
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ScriptSyntaxError(f"cannot parse YAML: {e}") from e
    raise ValueError(f"Unsupported script format: {fmt!r}")


__all__ = [
    "deserialize",
    "detect_format",
]
