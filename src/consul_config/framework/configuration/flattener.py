"""
JSON flattening for configuration values.

Stored KV values are JSON documents. They are parsed into a small tagged
union (object / array / scalar) and walked recursively, composing a
``:``-delimited configuration key for every leaf.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from ...domain.models import FlatConfig, KEY_DELIMITER, combine_path
from ...infrastructure.exceptions import FormatError


class TokenKind(Enum):
    """Kinds of JSON leaf tokens."""
    INTEGER = "Integer"
    FLOAT = "Float"
    STRING = "String"
    BOOLEAN = "Boolean"
    NULL = "Null"
    CONSTANT = "Constant"


SUPPORTED_KINDS = frozenset({
    TokenKind.INTEGER,
    TokenKind.FLOAT,
    TokenKind.STRING,
    TokenKind.BOOLEAN,
    TokenKind.NULL,
})


@dataclass(frozen=True)
class JsonScalar:
    kind: TokenKind
    value: Any


@dataclass(frozen=True)
class JsonArray:
    items: Tuple["JsonValue", ...]


@dataclass(frozen=True)
class JsonObject:
    properties: Tuple[Tuple[str, "JsonValue"], ...]


JsonValue = Union[JsonScalar, JsonArray, JsonObject]


class _Properties(list):
    """Object members in document order, repeated names included."""


class _NonStandardConstant(str):
    """NaN / Infinity: accepted by the json module, not by JSON."""


def parse_json(text: str, path: str = "") -> JsonValue:
    """
    Parse ``text`` into a JsonValue.

    Raises:
        FormatError: UNSUPPORTED_TOKEN when the text is not standard JSON.
    """
    try:
        document = json.loads(
            text,
            object_pairs_hook=_Properties,
            parse_constant=_NonStandardConstant,
        )
    except json.JSONDecodeError as e:
        raise FormatError(
            f"Unsupported JSON token at '{path}', line {e.lineno}, column {e.colno}: {e.msg}",
            FormatError.UNSUPPORTED_TOKEN,
            path=path,
            line=e.lineno,
            column=e.colno,
            cause=e,
        ) from e
    return _to_value(document)


def _to_value(node: Any) -> JsonValue:
    if isinstance(node, _Properties):
        return JsonObject(tuple((name, _to_value(child)) for name, child in node))
    if isinstance(node, list):
        return JsonArray(tuple(_to_value(item) for item in node))
    if isinstance(node, _NonStandardConstant):
        return JsonScalar(TokenKind.CONSTANT, str(node))
    if node is None:
        return JsonScalar(TokenKind.NULL, None)
    if isinstance(node, bool):
        return JsonScalar(TokenKind.BOOLEAN, node)
    if isinstance(node, int):
        return JsonScalar(TokenKind.INTEGER, node)
    if isinstance(node, float):
        return JsonScalar(TokenKind.FLOAT, node)
    return JsonScalar(TokenKind.STRING, node)


def format_scalar(scalar: JsonScalar) -> str:
    """Culture-invariant string form of a supported leaf."""
    if scalar.kind is TokenKind.NULL:
        return ""
    if scalar.kind is TokenKind.BOOLEAN:
        return "True" if scalar.value else "False"
    if scalar.kind is TokenKind.FLOAT:
        return _format_float(scalar.value)
    return str(scalar.value)


def _format_float(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    sign = "-" if exponent.startswith("-") else "+"
    return f"{mantissa}E{sign}{exponent.lstrip('+-').rjust(2, '0')}"


def split_key(key: str) -> Tuple[str, ...]:
    """Split a configuration key into its path segments."""
    if not key:
        return ()
    return tuple(key.split(KEY_DELIMITER))


def flatten(key_prefix: str, json_value: str) -> FlatConfig:
    """
    Flatten a JSON document into configuration keys rooted at ``key_prefix``.

    Object members append their name to the path, array elements their
    zero-based index. ``flatten("root", '{"a":{"b":1}}')`` yields
    ``{"root:a:b": "1"}``.

    Raises:
        FormatError: UNSUPPORTED_TOKEN for NaN/Infinity or non-JSON text,
            DUPLICATE_KEY when two leaves compose the same key (keys compare
            case-insensitively).
    """
    root = parse_json(json_value, key_prefix)
    collected: Dict[str, Tuple[str, str]] = {}
    _visit(root, split_key(key_prefix), collected)
    return FlatConfig(collected.values())


def _visit(value: JsonValue, path: Tuple[str, ...], collected: Dict[str, Tuple[str, str]]) -> None:
    if isinstance(value, JsonObject):
        for name, child in value.properties:
            _visit(child, path + (name,), collected)
    elif isinstance(value, JsonArray):
        for index, item in enumerate(value.items):
            _visit(item, path + (str(index),), collected)
    else:
        _visit_scalar(value, path, collected)


def _visit_scalar(scalar: JsonScalar, path: Tuple[str, ...], collected: Dict[str, Tuple[str, str]]) -> None:
    key = combine_path(path)
    if scalar.kind not in SUPPORTED_KINDS:
        raise FormatError(
            f"Unsupported JSON token '{scalar.value}' ({scalar.kind.value}) at '{key}'",
            FormatError.UNSUPPORTED_TOKEN,
            path=key,
        )

    folded = key.casefold()
    if folded in collected:
        raise FormatError(
            f"A duplicate key '{key}' was found",
            FormatError.DUPLICATE_KEY,
            path=key,
        )
    collected[folded] = (key, format_scalar(scalar))
