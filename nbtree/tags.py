# -*- coding: utf-8 -*-
""" The NBT tag model

A tree of NBT data is made of "tags". Each tag is a triple of data: the tag id
(see TagKind), an optional name, and a payload whose shape is fixed by the tag
id. There are exactly 13 kinds of tag and the set is closed; TAG_TYPES maps
each id to the one class implementing it.

Short summary of the payload shapes:

    - TAG_Byte, TAG_Short, TAG_Int, TAG_Long hold a signed int that must fit
      in 1, 2, 4 or 8 bytes respectively.

    - TAG_Float and TAG_Double hold an IEEE-754 binary32/binary64 float. A
      TAG_Float rounds its payload to single precision on assignment, so the
      value you read back is the value that will be serialized.

    - TAG_String holds a str (UTF-8 on the wire).

    - TAG_Byte_Array, TAG_Int_Array, TAG_Long_Array hold a list of ints, each
      range-checked like the scalar of the same width.

    - TAG_List holds unnamed tags which all share one kind, "tagID". An empty
      list usually has a tagID of TAG_End.

    - TAG_Compound holds named tags. Names are not required to be unique,
      though they usually are and the compound can be indexed by name.

    - TAG_End has no name and no payload. It only shows up as the tagID of an
      empty TAG_List or as the terminator of a compound in binary form.

Each child tag belongs to exactly one parent. Nothing here detects a tag that
has been added to two containers; don't do that.

The tag classes only hold and validate data. Serialization lives in nbt.py
(binary) and snbt.py (text), which dispatch on the tag id.
"""

from enum import IntEnum
import math
import numbers
import struct
from typing import Any, Dict, Iterator, List, Optional, Tuple
import warnings

from .errors import NBTWarning, RangeError, TagTypeError

# Lists and compounds nested deeper than this are refused by the readers,
# which stay within the interpreter's default recursion limit.
MAX_DEPTH = 256


class TagKind(IntEnum):
    """ The 1-byte tag id of each kind of tag """

    END = 0x00
    BYTE = 0x01
    SHORT = 0x02
    INT = 0x03
    LONG = 0x04
    FLOAT = 0x05
    DOUBLE = 0x06
    BYTE_ARRAY = 0x07
    STRING = 0x08
    LIST = 0x09
    COMPOUND = 0x0a
    INT_ARRAY = 0x0b
    LONG_ARRAY = 0x0c


class Tag:
    """ Base class of all tags """

    # "tag id", an immutable attribute of a specific subclass of Tag
    tid: TagKind = None

    def __init__(self, name: Optional[str] = None):
        """ Instantiation for all descendant tag types

        Args:

            name::str
                The name of the tag, or None when the tag is unnamed (an
                element of a TAG_List, or an unnamed root). Anything other
                than None is converted with str().
        """
        self.name = name

    @property
    def kind(self) -> TagKind:
        return self.tid

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, name: Optional[str]):
        self._name = None if name is None else str(name)

    @property
    def payload(self) -> Any:
        return None

    @property
    def value(self) -> Any:
        """ Alias of payload """
        return self.payload

    @value.setter
    def value(self, value: Any):
        self.payload = value

    def validate(self):
        """ Validate the current tag's payload

        No return value; an exception is raised if validation fails. Payloads
        are already validated on assignment, so this only catches changes made
        behind the tag's back (e.g. mutating the list returned by .payload).
        """

    def same_payload(self, other: "Tag") -> bool:
        return self.payload == other.payload

    def describe(self) -> str:
        """ Short human-readable summary of the payload; see __str__ """
        return str(self.payload)

    def __eq__(self, other: Any) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented
        # No name and the empty name are written the same way
        return (self.name or "") == (other.name or "") and self.same_payload(other)

    # Tags are mutable
    __hash__ = None

    def __str__(self) -> str:
        name = "None" if self.name is None else f'"{self.name}"'
        return f"{self.__class__.__name__}({name}): {self.describe()}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} payload={self.payload!r}>"


class TAG_End(Tag):
    """ Marks the end of a TAG_Compound; never named, never has a payload """

    tid = TagKind.END

    def __init__(self):
        super().__init__(None)

    @property
    def name(self) -> None:
        return None

    @name.setter
    def name(self, name: Optional[str]):
        if name is not None:
            raise TagTypeError("TAG_End cannot be named")

    def describe(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "<TAG_End>"


class TagInt(Tag):
    """ Parent-class for tags with an integer-typed payload
    """

    width: int = None
    minimum: int = None
    maximum: int = None

    def __init__(self, name: Optional[str] = None, payload: int = 0):
        super().__init__(name)
        self.payload = payload

    @classmethod
    def coerce(cls, value: Any) -> int:
        """ Return `value` as an int that fits this tag's width, or raise

        Booleans are accepted and become 1 or 0.
        """
        if value is None:
            raise TagTypeError(f"{cls.__name__} payload cannot be None")
        if isinstance(value, bool):
            return int(value)
        if not isinstance(value, numbers.Integral):
            raise TagTypeError(f"{cls.__name__} payload must be an int, not {type(value).__name__}")
        value = int(value)
        if not cls.minimum <= value <= cls.maximum:
            raise RangeError(f"{cls.__name__} payload must be between {cls.minimum} and {cls.maximum}, got {value}")
        return value

    @property
    def payload(self) -> int:
        return self._payload

    @payload.setter
    def payload(self, payload: int):
        self._payload = self.coerce(payload)

    def validate(self):
        self.coerce(self._payload)


class TAG_Byte(TagInt):

    tid = TagKind.BYTE
    width = 1
    minimum = -(1 << 7)
    maximum = (1 << 7) - 1


class TAG_Short(TagInt):

    tid = TagKind.SHORT
    width = 2
    minimum = -(1 << 15)
    maximum = (1 << 15) - 1


class TAG_Int(TagInt):

    tid = TagKind.INT
    width = 4
    minimum = -(1 << 31)
    maximum = (1 << 31) - 1


class TAG_Long(TagInt):

    tid = TagKind.LONG
    width = 8
    minimum = -(1 << 63)
    maximum = (1 << 63) - 1


class TagFloat(Tag):
    """ Parent class for floating point tag types
    """

    width: int = None
    struct_format: str = None

    def __init__(self, name: Optional[str] = None, payload: float = 0.0):
        super().__init__(name)
        self.payload = payload

    @classmethod
    def coerce(cls, value: Any) -> float:
        if value is None:
            raise TagTypeError(f"{cls.__name__} payload cannot be None")
        if isinstance(value, (str, bytes, bytearray)):
            raise TagTypeError(f"{cls.__name__} payload must be a number, not {type(value).__name__}")
        try:
            value = float(value)
        except (TypeError, ValueError) as e:
            raise TagTypeError(f"{cls.__name__} payload must be a float: {e}") from e
        # Round-trip through the wire representation so the payload is exactly
        # what will be written. Only narrows anything for TAG_Float.
        try:
            return struct.unpack(cls.struct_format, struct.pack(cls.struct_format, value))[0]
        except OverflowError:
            # Too large for binary32; rounds to infinity like any IEEE-754 narrowing
            return math.copysign(math.inf, value)

    @property
    def payload(self) -> float:
        return self._payload

    @payload.setter
    def payload(self, payload: float):
        self._payload = self.coerce(payload)

    def validate(self):
        self.coerce(self._payload)

    def same_payload(self, other: "TagFloat") -> bool:
        # NaN is a legal payload; two NaN tags are the same tag.
        if math.isnan(self._payload) and math.isnan(other._payload):
            return True
        return self._payload == other._payload


class TAG_Float(TagFloat):

    tid = TagKind.FLOAT
    width = 4
    struct_format = ">f"


class TAG_Double(TagFloat):

    tid = TagKind.DOUBLE
    width = 8
    struct_format = ">d"


class TAG_String(Tag):

    tid = TagKind.STRING

    def __init__(self, name: Optional[str] = None, payload: str = ""):
        super().__init__(name)
        self.payload = payload

    @property
    def payload(self) -> str:
        return self._payload

    @payload.setter
    def payload(self, payload: str):
        if payload is None:
            raise TagTypeError("TAG_String payload cannot be None")
        self._payload = str(payload)

    def validate(self):
        if not isinstance(self._payload, str):
            raise TagTypeError("TAG_String payload must be a str")

    def describe(self) -> str:
        return f'"{self._payload}"'


class TagIterableNumeric(Tag):
    """ Parent-class for arrays of numerics

    The payload is a plain list of ints rather than a list of TAG_Byte (etc.)
    instances. Every element is range-checked by element_class.
    """

    element_class: TagInt = None

    def __init__(self, name: Optional[str] = None, payload: List[int] = None):
        super().__init__(name)
        self.payload = [] if payload is None else payload

    @property
    def width(self) -> int:
        return self.element_class.width

    @property
    def payload(self) -> List[int]:
        return self._payload

    @payload.setter
    def payload(self, payload: List[int]):
        if payload is None:
            raise TagTypeError(f"{self.__class__.__name__} payload cannot be None")
        if isinstance(payload, (str, bytes)):
            raise TagTypeError(f"{self.__class__.__name__} payload must be a sequence of ints")
        self._payload = [self.element_class.coerce(value) for value in payload]

    def validate(self):
        if not isinstance(self._payload, list):
            raise TagTypeError(f"{self.__class__.__name__} payload must be a list")
        for value in self._payload:
            self.element_class.coerce(value)

    def append(self, value: int):
        self._payload.append(self.element_class.coerce(value))

    def extend(self, values):
        self._payload.extend([self.element_class.coerce(value) for value in values])

    def __len__(self) -> int:
        return len(self._payload)

    def __iter__(self) -> Iterator[int]:
        return iter(self._payload)

    def __getitem__(self, index):
        return self._payload[index]

    def __setitem__(self, index, value):
        if isinstance(index, slice):
            self._payload[index] = [self.element_class.coerce(v) for v in value]
        else:
            self._payload[index] = self.element_class.coerce(value)

    def __delitem__(self, index):
        del self._payload[index]

    def describe(self) -> str:
        count = len(self._payload)
        return f"{count} {'item' if count == 1 else 'items'}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} items={len(self._payload)}>"


class TAG_Byte_Array(TagIterableNumeric):

    tid = TagKind.BYTE_ARRAY
    element_class = TAG_Byte


class TAG_Int_Array(TagIterableNumeric):

    tid = TagKind.INT_ARRAY
    element_class = TAG_Int


class TAG_Long_Array(TagIterableNumeric):

    tid = TagKind.LONG_ARRAY
    element_class = TAG_Long


class TagIterable(Tag):
    """ Parent-class for tags whose payload is a list of other tags

    Children are validated as they're added (see adopt()). Mutating the list
    returned by .payload directly skips that; call validate() afterwards.
    """

    def __init__(self, name: Optional[str] = None, payload: List[Tag] = None):
        super().__init__(name)
        self.payload = [] if payload is None else payload

    @property
    def payload(self) -> List[Tag]:
        return self._payload

    @payload.setter
    def payload(self, payload: List[Tag]):
        if payload is None:
            raise TagTypeError(f"{self.__class__.__name__} payload cannot be None")
        self._payload = []
        for child in payload:
            self.append(child)

    def check(self, child: Any) -> Tag:
        if child is None:
            raise TagTypeError(f"{self.__class__.__name__} cannot contain None")
        if not isinstance(child, Tag):
            raise TagTypeError(f"{self.__class__.__name__} can only contain tags, not {type(child).__name__}")
        if isinstance(child, TAG_End):
            raise TagTypeError(f"{self.__class__.__name__} cannot contain TAG_End")
        return child

    def adopt(self, child: Any, replacing: bool = False) -> Tag:
        """ Validate a tag that is about to become a child of this one

        Implementation is specific to each container.
        """
        raise NotImplementedError

    def append(self, child: Tag) -> Tag:
        self._payload.append(self.adopt(child))
        return child

    def extend(self, children):
        for child in children:
            self.append(child)

    def __len__(self) -> int:
        return len(self._payload)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self._payload)

    def __getitem__(self, index):
        return self._payload[index]

    def __setitem__(self, index: int, child: Tag):
        self._payload[index] = self.adopt(child, replacing=True)

    def __delitem__(self, index):
        del self._payload[index]

    def validate(self):
        if not isinstance(self._payload, list):
            raise TagTypeError(f"{self.__class__.__name__} payload must be a list")
        for child in self._payload:
            self.check(child)
            child.validate()

    def describe(self) -> str:
        count = len(self._payload)
        return f"{count} {'child' if count == 1 else 'children'}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} children={len(self._payload)}>"


class TAG_List(TagIterable):

    tid = TagKind.LIST

    def __init__(self, name: Optional[str] = None, payload: List[Tag] = None, tagID: int = TagKind.END):
        """
        The "tagID" attribute (as it's called in the NBT docs) is unique to
            TAG_List. The value gives the type of the tags stored in the
            payload. An empty list has no children to look at, so the
            attribute is kept even when the payload is empty.

        A list created with a tagID of TAG_End takes the kind of the first
            child added to it.
        """
        self.tagID = tagID
        super().__init__(name, payload)

    @property
    def tagID(self) -> TagKind:
        return self._tagID

    @tagID.setter
    def tagID(self, tagID: int):
        try:
            self._tagID = TagKind(tagID)
        except ValueError as e:
            raise TagTypeError(f"invalid TAG_List child kind: {tagID!r}") from e

    @property
    def child_kind(self) -> TagKind:
        """ Alias of tagID """
        return self._tagID

    def adopt(self, child: Any, replacing: bool = False) -> Tag:
        self.check(child)
        if self._tagID == TagKind.END and not self._payload:
            self._tagID = child.tid
        elif child.tid != self._tagID:
            raise TagTypeError(
                f"TAG_List of {TAG_TYPES[self._tagID].__name__} cannot contain {child.__class__.__name__}"
            )
        # List elements are unnamed
        child.name = None
        return child

    def validate(self):
        super().validate()
        for child in self._payload:
            if child.tid != self._tagID:
                raise TagTypeError(
                    f"TAG_List of {TAG_TYPES[self._tagID].__name__} contains a {child.__class__.__name__}"
                )
            if child.name is not None:
                raise TagTypeError("TAG_List children must be unnamed")

    def same_payload(self, other: "TAG_List") -> bool:
        return self._tagID == other._tagID and self._payload == other._payload


class TAG_Compound(TagIterable):

    tid = TagKind.COMPOUND

    def adopt(self, child: Any, replacing: bool = False) -> Tag:
        self.check(child)
        if child.name is None:
            warnings.warn("direct children of a TAG_Compound should be named", NBTWarning, stacklevel=3)
        return child

    def __getitem__(self, key):
        """ Index by position, or by name (the first child with that name) """
        if isinstance(key, str):
            for child in self._payload:
                if child.name == key:
                    return child
            raise KeyError(key)
        return self._payload[key]

    def __setitem__(self, key, child: Tag):
        """ Replace by position, or by name (appending when the name is new) """
        if not isinstance(key, str):
            super().__setitem__(key, child)
            return
        self.check(child)
        child.name = key
        for index, existing in enumerate(self._payload):
            if existing.name == key:
                self._payload[index] = child
                return
        self._payload.append(child)

    def __contains__(self, name: str) -> bool:
        return any(child.name == name for child in self._payload)

    def get(self, name: str, default: Optional[Tag] = None) -> Optional[Tag]:
        try:
            return self[name]
        except KeyError:
            return default

    def keys(self) -> List[Optional[str]]:
        return [child.name for child in self._payload]


# Official "tags" as defined by the NBT docs, in tag id order.
TAGS: Tuple[type, ...] = (
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
    TAG_Long_Array
)

# A mapping from tag id to tag classes is generally useful.
TAG_TYPES: Dict[TagKind, type] = {
    tag_class.tid: tag_class for tag_class in TAGS
}
