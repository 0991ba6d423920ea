# -*- coding: utf-8 -*-
""" Tests for jsonconv.py
"""

import json
from pathlib import Path

import pytest

from nbtree import jsonconv, nbt
from nbtree.errors import FormatError, RangeError
from nbtree.tags import TagKind, TAG_Byte_Array, TAG_Compound, TAG_Int, TAG_List, TAG_String


def test_json_roundtrip_all_test_data(nbt_filepath: Path):
    tree = nbt.deserialize_file(nbt_filepath)
    assert jsonconv.from_json(jsonconv.to_json(tree)) == tree
    assert jsonconv.from_json(jsonconv.to_json(tree, pretty=True)) == tree


def test_to_dict():
    tree = TAG_Compound("hello world", [
        TAG_String("name", "Bananrama"),
        TAG_List("scores", [TAG_Int(None, 1), TAG_Int(None, 2)]),
        TAG_Byte_Array("bytes", [0, 62, 34]),
    ])
    assert jsonconv.to_dict(tree) == {
        "name": "hello world",
        "type": 10,
        "values": [
            {"name": "name", "type": 8, "value": "Bananrama"},
            {"name": "scores", "type": 9, "child_type": 3, "values": [{"value": 1}, {"value": 2}]},
            {"name": "bytes", "type": 7, "values": [0, 62, 34]},
        ]
    }


def test_unnamed_tags_have_no_name_key():
    assert jsonconv.to_dict(TAG_Int(None, 5)) == {"type": 3, "value": 5}


def test_empty_list_keeps_child_type():
    data = jsonconv.to_dict(TAG_List("l", tagID=TagKind.STRING))
    assert data == {"name": "l", "type": 9, "child_type": 8, "values": []}
    assert jsonconv.from_dict(data).tagID == TagKind.STRING


def test_to_json():
    tree = TAG_Compound("root", [TAG_String("s", "héllo")])
    text = jsonconv.to_json(tree)
    assert "\n" not in text
    assert "héllo" in text
    assert json.loads(text)["values"][0]["value"] == "héllo"

    pretty = jsonconv.to_json(tree, pretty=True, indent=4)
    assert '\n    "name": "root"' in pretty


@pytest.mark.parametrize(
    "data",
    [
        [],
        "text",
        {},
        {"type": 99},
        {"type": True},
        {"type": "10"},
        {"type": 1},
        {"type": 9, "values": []},
        {"type": 7, "values": "abc"},
        {"type": 10, "values": [5]},
    ]
)
def test_from_dict_invalid_structure(data):
    with pytest.raises(FormatError):
        jsonconv.from_dict(data)


def test_from_dict_invalid_values():
    with pytest.raises(RangeError):
        jsonconv.from_dict({"type": 1, "value": 300})


def test_from_json_invalid():
    with pytest.raises(FormatError):
        jsonconv.from_json("{not json")
