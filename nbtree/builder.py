# -*- coding: utf-8 -*-
""" Build an NBT tree from plain values

    with TagBuilder.create("hello world") as b:
        b.string("name", "Bananrama")
        with b.list("scores", TagKind.INT):
            b.int(None, 1).int(None, 2)
        with b.compound("pos"):
            b.double("x", 1.5).double("y", 64.0)
    tree = b.root

New tags go into the innermost open list/compound, or into the root compound
when none is open.
"""

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional
import warnings

from .errors import NBTWarning, TagTypeError
from .tags import (
    Tag,
    TagKind,
    TAG_Byte,
    TAG_Byte_Array,
    TAG_Compound,
    TAG_Double,
    TAG_Float,
    TAG_Int,
    TAG_Int_Array,
    TAG_List,
    TAG_Long,
    TAG_Long_Array,
    TAG_Short,
    TAG_String,
)


class _Scope:
    """ Returned by TagBuilder.list() and .compound(); use it as a context manager """

    def __init__(self, builder: "TagBuilder", node: Tag):
        self.builder = builder
        self.node = node

    def __enter__(self) -> "TagBuilder":
        self.builder._stack.append(self.node)
        return self.builder

    def __exit__(self, *exc_info):
        self.builder._stack.pop()
        return False


class TagBuilder:

    def __init__(self, name: Optional[str] = None):
        self.root = TAG_Compound(name)
        self._stack = []

    @classmethod
    @contextmanager
    def create(cls, name: Optional[str] = None) -> Iterator["TagBuilder"]:
        """ Yield a new builder; its tree is complete once the block exits """
        yield cls(name)

    @classmethod
    def from_compound(cls, compound: TAG_Compound) -> "TagBuilder":
        """ Continue building an existing TAG_Compound """
        if not isinstance(compound, TAG_Compound):
            raise TagTypeError(f"{compound!r} is not a TAG_Compound")
        builder = cls()
        builder.root = compound
        return builder

    @property
    def current(self) -> Tag:
        return self._stack[-1] if self._stack else self.root

    def add(self, tag: Tag) -> "TagBuilder":
        """ Add an existing tag to the current node """
        if not isinstance(tag, Tag):
            raise TagTypeError(f"expected a tag, got {type(tag).__name__}")
        node = self.current
        if isinstance(node, TAG_Compound) and tag.name is None:
            warnings.warn("direct children of a TAG_Compound should be named", NBTWarning, stacklevel=2)
            # Already flagged; don't let the compound warn a second time
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", NBTWarning)
                node.append(tag)
        else:
            node.append(tag)
        return self

    def byte(self, name: Optional[str], value: int) -> "TagBuilder":
        return self.add(TAG_Byte(name, value))

    def short(self, name: Optional[str], value: int) -> "TagBuilder":
        return self.add(TAG_Short(name, value))

    def long(self, name: Optional[str], value: int) -> "TagBuilder":
        return self.add(TAG_Long(name, value))

    def double(self, name: Optional[str], value: float) -> "TagBuilder":
        return self.add(TAG_Double(name, value))

    def string(self, name: Optional[str], value: str) -> "TagBuilder":
        return self.add(TAG_String(name, value))

    def byte_array(self, name: Optional[str], values: Iterable[int]) -> "TagBuilder":
        return self.add(TAG_Byte_Array(name, list(values)))

    def int_array(self, name: Optional[str], values: Iterable[int]) -> "TagBuilder":
        return self.add(TAG_Int_Array(name, list(values)))

    def long_array(self, name: Optional[str], values: Iterable[int]) -> "TagBuilder":
        return self.add(TAG_Long_Array(name, list(values)))

    def compound(self, name: Optional[str], children: Iterable[Tag] = ()) -> _Scope:
        """ Add a TAG_Compound; tags added inside the returned context go into it """
        node = TAG_Compound(name, list(children))
        self.add(node)
        return _Scope(self, node)

    # These three shadow builtins inside the class body, so they come last.

    def int(self, name: Optional[str], value: int) -> "TagBuilder":
        return self.add(TAG_Int(name, value))

    def float(self, name: Optional[str], value: float) -> "TagBuilder":
        return self.add(TAG_Float(name, value))

    def list(self, name: Optional[str], child_kind: TagKind = TagKind.END, children: Iterable[Tag] = ()) -> _Scope:
        """ Add a TAG_List; tags added inside the returned context go into it """
        node = TAG_List(name, list(children), tagID=child_kind)
        self.add(node)
        return _Scope(self, node)
