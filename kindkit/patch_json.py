"""JSON merge patches (RFC 7386) and JSON patches (RFC 6902)."""

from __future__ import annotations

import copy
import json
from typing import Any


class JSONPatchError(ValueError):
    """Raised when a JSON patch cannot be decoded or applied."""


def merge_patch(document: Any, patch: Any) -> Any:
    """Return document with the JSON merge patch applied; inputs are not changed."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(document) if isinstance(document, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = merge_patch(result.get(key), value)
    return result


def decode_patch(data: str | bytes | list) -> list[dict[str, Any]]:
    """Decode a JSON patch document into a list of operations."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise JSONPatchError(f"invalid JSON patch: {exc}") from exc
    if not isinstance(data, list) or not all(isinstance(op, dict) for op in data):
        raise JSONPatchError("a JSON patch must be a list of operation objects")
    return data


def _parse_pointer(pointer: Any) -> list[str]:
    if not isinstance(pointer, str):
        raise JSONPatchError(f"invalid JSON pointer: {pointer!r}")
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise JSONPatchError(f"JSON pointer must start with '/': {pointer!r}")
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer[1:].split("/")]


def _index(container: list, token: str, *, for_add: bool = False) -> int:
    if for_add and token == "-":
        return len(container)
    if not token.isdigit() or (len(token) > 1 and token.startswith("0")):
        raise JSONPatchError(f"invalid array index: {token!r}")
    index = int(token)
    limit = len(container) if for_add else len(container) - 1
    if index > limit:
        raise JSONPatchError(f"array index out of range: {index}")
    return index


def _resolve(document: Any, tokens: list[str]) -> Any:
    node = document
    for token in tokens:
        if isinstance(node, dict):
            if token not in node:
                raise JSONPatchError(f"path member not found: {token!r}")
            node = node[token]
        elif isinstance(node, list):
            node = node[_index(node, token)]
        else:
            raise JSONPatchError(f"cannot traverse into a scalar at {token!r}")
    return node


def _get(document: Any, pointer: Any) -> Any:
    return _resolve(document, _parse_pointer(pointer))


def _add(document: Any, pointer: Any, value: Any) -> Any:
    tokens = _parse_pointer(pointer)
    if not tokens:
        return value
    parent = _resolve(document, tokens[:-1])
    last = tokens[-1]
    if isinstance(parent, dict):
        parent[last] = value
    elif isinstance(parent, list):
        parent.insert(_index(parent, last, for_add=True), value)
    else:
        raise JSONPatchError(f"cannot add to a scalar at {pointer!r}")
    return document


def _remove(document: Any, pointer: Any) -> tuple[Any, Any]:
    tokens = _parse_pointer(pointer)
    if not tokens:
        raise JSONPatchError("cannot remove the whole document")
    parent = _resolve(document, tokens[:-1])
    last = tokens[-1]
    if isinstance(parent, dict):
        if last not in parent:
            raise JSONPatchError(f"unable to remove nonexistent key: {last!r}")
        return document, parent.pop(last)
    if isinstance(parent, list):
        return document, parent.pop(_index(parent, last))
    raise JSONPatchError(f"cannot remove from a scalar at {pointer!r}")


def _json_equal(left: Any, right: Any) -> bool:
    return json.dumps(left, sort_keys=True) == json.dumps(right, sort_keys=True)


def _require(operation: dict, key: str) -> Any:
    if key not in operation:
        raise JSONPatchError(f"operation {operation.get('op')!r} is missing {key!r}")
    return operation[key]


def apply_patch(document: Any, operations: list[dict[str, Any]]) -> Any:
    """Return document with the RFC 6902 operations applied; the input is not changed."""
    result = copy.deepcopy(document)
    for operation in decode_patch(operations):
        op = operation.get("op")
        path = _require(operation, "path")
        if op == "add":
            result = _add(result, path, copy.deepcopy(_require(operation, "value")))
        elif op == "remove":
            result, _ = _remove(result, path)
        elif op == "replace":
            value = copy.deepcopy(_require(operation, "value"))
            if _parse_pointer(path):
                result, _ = _remove(result, path)
            result = _add(result, path, value)
        elif op == "move":
            source = _require(operation, "from")
            result, value = _remove(result, source)
            result = _add(result, path, value)
        elif op == "copy":
            value = copy.deepcopy(_get(result, _require(operation, "from")))
            result = _add(result, path, value)
        elif op == "test":
            if not _json_equal(_get(result, path), _require(operation, "value")):
                raise JSONPatchError(f"test failed at {path!r}")
        else:
            raise JSONPatchError(f"unsupported operation: {op!r}")
    return result