# -*- coding: utf-8 -*-
""" Convert NBT trees to and from JSON

Every tag becomes a JSON object with its "name" (omitted when None) and
"type" (the numeric tag id). Value tags add a "value", arrays and compounds a
"values" list, and lists also carry a "child_type". The elements of a list
are written without "name" and "type", since the list already says both:

    {"name": "hello world", "type": 10, "values": [
        {"name": "name", "type": 8, "value": "Bananrama"},
        {"name": "scores", "type": 9, "child_type": 3, "values": [{"value": 1}, {"value": 2}]}
    ]}
"""

import json
from typing import Any, Dict

from .errors import FormatError
from .tags import Tag, TagIterable, TagIterableNumeric, TagKind, TAG_End, TAG_List, TAG_TYPES


def to_dict(tag: Tag) -> Dict[str, Any]:
    """ Return the JSON-ready dict representation of a tree """
    data: Dict[str, Any] = {"name": tag.name, "type": int(tag.tid)}
    if isinstance(tag, TAG_List):
        data["child_type"] = int(tag.tagID)
        values = []
        for child in tag.payload:
            child_data = to_dict(child)
            child_data.pop("name", None)
            child_data.pop("type", None)
            values.append(child_data)
        data["values"] = values
    elif isinstance(tag, TagIterable):
        data["values"] = [to_dict(child) for child in tag.payload]
    elif isinstance(tag, TagIterableNumeric):
        data["values"] = list(tag.payload)
    elif not isinstance(tag, TAG_End):
        data["value"] = tag.payload
    return {key: value for key, value in data.items() if value is not None}


def _kind(value: Any, what: str) -> TagKind:
    if isinstance(value, bool) or not isinstance(value, int):
        raise FormatError(f"invalid {what}: {value!r}")
    try:
        return TagKind(value)
    except ValueError:
        raise FormatError(f"invalid {what}: {value!r}") from None


def _values(data: Dict[str, Any]) -> list:
    values = data.get("values")
    if not isinstance(values, list):
        raise FormatError("invalid array: expected a list of values")
    return values


def _from_dict(data: Any, kind: TagKind, name: Any) -> Tag:
    if not isinstance(data, dict):
        raise FormatError(f"expected JSON object, got {type(data).__name__}")
    tag_class = TAG_TYPES[kind]

    if kind == TagKind.END:
        return TAG_End()

    if kind == TagKind.LIST:
        child_kind = _kind(data.get("child_type"), "child type")
        return TAG_List(
            name,
            [_from_dict(child, child_kind, None) for child in _values(data)],
            tagID=child_kind
        )

    if kind == TagKind.COMPOUND:
        return tag_class(name, [from_dict(child) for child in _values(data)])

    if issubclass(tag_class, TagIterableNumeric):
        return tag_class(name, _values(data))

    if "value" not in data:
        raise FormatError(f"{tag_class.__name__} requires a value")
    return tag_class(name, data["value"])


def from_dict(data: Any) -> Tag:
    """ Build a tree from its dict representation (see to_dict())

    Raises FormatError for a structure that doesn't describe a tag; values
    that don't fit their tag raise the usual RangeError / TagTypeError.
    """
    if not isinstance(data, dict):
        raise FormatError(f"invalid format, expected JSON object, got {type(data).__name__}")
    kind = _kind(data.get("type"), "type")
    return _from_dict(data, kind, data.get("name"))


def to_json(tag: Tag, pretty: bool = False, indent: int = 2) -> str:
    """ Return a tree as JSON text """
    return json.dumps(to_dict(tag), indent=indent if pretty else None, ensure_ascii=False)


def from_json(text: str) -> Tag:
    """ Parse JSON text produced by to_json() """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise FormatError(f"invalid JSON: {e}") from e
    return from_dict(data)
