"""Decoding of bracketed DataTables.js request parameters.

DataTables.js posts its server-side parameters form-encoded with PHP-style
bracket keys::

    columns[0][data]=title&columns[0][search][value]=abc&order[0][dir]=asc

``parse_nested_params`` rebuilds the nested structure so it can be validated
into a ``DataTablesRequest``.
"""

from __future__ import annotations

import re

from collections.abc import Iterable, Mapping
from typing import Any


_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def split_key(key: str) -> list[str]:
    """Split ``a[b][c]`` into ``["a", "b", "c"]``.

    Keys that are not well-formed bracket expressions are returned whole.
    An empty segment (``a[]``) means "append".
    """
    match = _KEY_RE.match(key)
    if match is None:
        return [key]
    return [match.group(1), *_SEGMENT_RE.findall(match.group(2))]


def _iter_pairs(items: Any) -> Iterable[tuple[Any, Any]]:
    """Yield key/value pairs from a mapping, a multi-dict or a pair list."""
    if hasattr(items, "multi_items"):
        return items.multi_items()
    if isinstance(items, Mapping):
        return items.items()
    return items


def _listify(node: Any) -> Any:
    """Turn dicts keyed exactly ``0..n-1`` into lists, recursively."""
    if not isinstance(node, dict):
        return node

    converted = {k: _listify(v) for k, v in node.items()}
    if not converted or not all(isinstance(k, str) and k.isdigit() for k in converted):
        return converted

    by_index = {int(k): v for k, v in converted.items()}
    if len(by_index) == len(converted) and sorted(by_index) == list(range(len(by_index))):
        return [by_index[i] for i in range(len(by_index))]
    return converted


def parse_nested_params(items: Any) -> dict[str, Any]:
    """Rebuild nested request data from flat bracketed keys.

    Parameters
    ----------
    items : Mapping | multi-dict | Iterable[tuple[str, Any]]
        Flat request parameters. Starlette ``QueryParams``/``FormData``
        are read through ``multi_items()`` so repeated keys are kept.

    Returns
    -------
    dict[str, Any]
        Nested parameters. Repeated scalar keys keep the last value.
    """
    root: dict[str, Any] = {}

    for raw_key, value in _iter_pairs(items):
        parts = split_key(str(raw_key))
        node = root
        for part in parts[:-1]:
            if part == "":
                part = str(len(node))
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child

        last = parts[-1]
        if last == "":
            last = str(len(node))
        node[last] = value

    return {key: _listify(value) for key, value in root.items()}


def is_flat_params(data: Mapping[str, Any]) -> bool:
    """Return True when any key still carries bracket notation."""
    return any("[" in str(key) for key in data)
