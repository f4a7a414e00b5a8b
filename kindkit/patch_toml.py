"""Patching TOML documents with merge patches and JSON 6902 patches."""

from __future__ import annotations

import datetime
import json
import math
import re
import tomllib
from typing import Any

from kindkit.patch_json import JSONPatchError, apply_patch, decode_patch, merge_patch
from kindkit.patch_kube import PatchError

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


def _to_plain(data: Any) -> Any:
    def default(value: Any) -> str:
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        raise TypeError(type(value).__name__)

    return json.loads(json.dumps(data, default=default))


def _toml_to_data(text: str) -> dict[str, Any]:
    try:
        return _to_plain(tomllib.loads(text))
    except tomllib.TOMLDecodeError as exc:
        raise PatchError(f"invalid TOML: {exc}") from exc


def _key(key: str) -> str:
    return key if _BARE_KEY.match(key) else json.dumps(key, ensure_ascii=False)


def _is_table_array(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def _value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list):
        if any(isinstance(v, dict) for v in value):
            raise PatchError("cannot encode an array mixing tables and values")
        return "[" + ", ".join(_value(v) for v in value if v is not None) + "]"
    raise PatchError(f"cannot encode {type(value).__name__} as TOML")


def _skipped(value: Any) -> bool:
    return value is None or (isinstance(value, list) and not value)


def _emit(table: dict[str, Any], path: tuple[str, ...], lines: list[str]) -> None:
    indent = "  " * len(path)
    direct = sorted(
        k for k, v in table.items()
        if not _skipped(v) and not isinstance(v, dict) and not _is_table_array(v)
    )
    subs = sorted(
        k for k, v in table.items() if isinstance(v, dict) or _is_table_array(v)
    )
    for key in direct:
        lines.append(f"{indent}{_key(key)} = {_value(table[key])}")
    if not path and direct and subs:
        lines.append("")
    for key in subs:
        sub_path = path + (key,)
        name = ".".join(_key(k) for k in sub_path)
        value = table[key]
        if isinstance(value, dict):
            lines.append(f"{indent}[{name}]")
            _emit(value, sub_path, lines)
        else:
            for item in value:
                lines.append(f"{indent}[[{name}]]")
                _emit(item, sub_path, lines)


def encode_toml(data: dict[str, Any]) -> str:
    """Encode a mapping as TOML with sorted keys and indented tables."""
    if not isinstance(data, dict):
        raise PatchError("TOML documents must be tables")
    lines: list[str] = []
    _emit(data, (), lines)
    return "\n".join(lines) + "\n" if lines else ""


def patch_toml(
    to_patch: str,
    patches: list[str] | None = None,
    patches6902: list[str] | None = None,
) -> str:
    """Apply TOML merge patches, then JSON 6902 patches, to a TOML document."""
    data: Any = _toml_to_data(to_patch)
    for patch in patches or []:
        data = merge_patch(data, _toml_to_data(patch))
    for patch in patches6902 or []:
        try:
            data = apply_patch(data, decode_patch(patch))
        except JSONPatchError as exc:
            raise PatchError(str(exc)) from exc
    return encode_toml(data)