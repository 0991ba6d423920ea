# -*- coding: utf-8 -*-
""" Exceptions and warnings raised by nbtree

Every exception derives from NBTError and from the builtin exception that a
caller would otherwise expect (OverflowError, TypeError, ValueError,
SyntaxError), so either can be caught.
"""

from typing import Optional


class NBTError(Exception):
    """ Base class of all nbtree errors """


class RangeError(NBTError, OverflowError):
    """ A numeric value doesn't fit the width of its tag kind """


class TagTypeError(NBTError, TypeError):
    """ A tag was required but something else (or nothing) was given

    Also raised when the kind of a TAG_List child doesn't match the list's
    declared child kind.
    """


class FormatError(NBTError, ValueError):
    """ Malformed binary data, or a structurally invalid tree

    `offset` is the byte offset into the binary input where the problem was
    found, when known.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)
        self.offset = offset


class SNBTSyntaxError(NBTError, SyntaxError):
    """ The SNBT token sequence can't be reduced to a valid object

    `position` is the character offset of the offending token, when known.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class NBTWarning(UserWarning):
    """ Something was tolerated instead of raised

    e.g. an unnamed child of a TAG_Compound, or a string that had to be
    repaired to be encoded as UTF-8.
    """
