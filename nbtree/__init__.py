# -*- coding: utf-8 -*-
""" nbtree: NBT and SNBT serialization of tag trees

    from nbtree import nbt, snbt

    tree = snbt.parse('{name:"Bananrama",scores:[1,2,3]}')
    data = nbt.serialize(tree)
    assert nbt.deserialize(data) == tree
"""

from .errors import FormatError, NBTError, NBTWarning, RangeError, SNBTSyntaxError, TagTypeError
from .tags import (
    Tag,
    TagKind,
    TAGS,
    TAG_TYPES,
    TAG_End,
    TAG_Byte,
    TAG_Short,
    TAG_Int,
    TAG_Long,
    TAG_Float,
    TAG_Double,
    TAG_Byte_Array,
    TAG_String,
    TAG_List,
    TAG_Compound,
    TAG_Int_Array,
    TAG_Long_Array,
)
from .nbt import deserialize, deserialize_file, deserialize_from, serialize, serialize_file, serialize_to
from .snbt import parse, stringify

__version__ = "0.1a"
