# -*- coding: utf-8 -*-
""" SNBT ("stringified NBT") parser and writer

SNBT is the text form of an NBT tree, e.g.

    {name:"Bananrama",pos:[1.5d,64.0d,-3.25d],flags:[B;1b,0b],count:3}

Grammar, informally:

    document   := object
    object     := [name ':'] value
    value      := compound | list | bytearray | intarray | longarray
                | string | int | short | byte | long | float | double
    compound   := '{' [object (',' object)*] '}'
    list       := '[' [object (',' object)*] ']'
    bytearray  := '[B;' [literal (',' literal)*] ']'    (also [I; and [L;)

Numbers take their type from a suffix: b=Byte, s=Short, l=Long, f=Float,
d=Double. A bare number with a decimal point is a Double, a bare integer is
an Int.

The whole document is tokenized up front (see lexer.py) and parsed by
recursive descent. All parser state belongs to one parse() call.
"""

from decimal import Decimal
import math
import re
from typing import Callable, Dict, List

from .errors import FormatError, SNBTSyntaxError
from .lexer import Token, TokenType, tokenize
from .tags import (
    MAX_DEPTH,
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

# Skipped transparently whenever the parser moves to the next token
INSIGNIFICANT_TOKENS = (TokenType.WHITESPACE, TokenType.COMMA)

SCALAR_TOKENS: Dict[TokenType, type] = {
    TokenType.STRING: TAG_String,
    TokenType.INT: TAG_Int,
    TokenType.DOUBLE: TAG_Double,
    TokenType.FLOAT: TAG_Float,
    TokenType.BYTE: TAG_Byte,
    TokenType.SHORT: TAG_Short,
    TokenType.LONG: TAG_Long,
}

ARRAY_TOKENS: Dict[TokenType, type] = {
    TokenType.BYTE_ARRAY: TAG_Byte_Array,
    TokenType.INT_ARRAY: TAG_Int_Array,
    TokenType.LONG_ARRAY: TAG_Long_Array,
}

# Literals accepted inside [B;...], [I;...] and [L;...]. The suffix doesn't
# have to match the array; the array range-checks every value anyway.
INTEGER_TOKENS = (TokenType.BYTE, TokenType.SHORT, TokenType.INT, TokenType.LONG)


def _describe(token: Token) -> str:
    return f"{token.type.name} {token.value!r}"


class _Parser:
    """ Cursor over the tokens of a single SNBT document """

    def __init__(self, tokens: List[Token], length: int):
        self.tokens = tokens
        self.length = length
        self.pos = -1
        self.depth = 0

    def next(self) -> Token:
        """ Advance to the next significant token """
        while True:
            self.pos += 1
            if self.pos >= len(self.tokens):
                raise SNBTSyntaxError("unexpected end of input", self.length)
            token = self.tokens[self.pos]
            if token.type not in INSIGNIFICANT_TOKENS:
                return token

    def enter(self, token: Token):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise SNBTSyntaxError(f"tags nested deeper than {MAX_DEPTH} levels", token.position)

    def leave(self):
        self.depth -= 1

    def parse_document(self, allow_trailing: bool) -> Tag:
        tag = self.parse_object(self.next())
        if not allow_trailing:
            for token in self.tokens[self.pos + 1:]:
                if token.type is not TokenType.WHITESPACE:
                    raise SNBTSyntaxError(f"unexpected {_describe(token)} after the end of the document", token.position)
        return tag

    def parse_name(self, token: Token) -> str:
        separator = self.next()
        if separator.type is not TokenType.SEPARATOR:
            raise SNBTSyntaxError(f"expected ':' after name {token.value!r}, got {_describe(separator)}", separator.position)
        return token.value

    def parse_object(self, token: Token) -> Tag:
        name = None
        if token.type is TokenType.IDENTIFIER:
            name = self.parse_name(token)
            token = self.next()

        if token.type in SCALAR_TOKENS:
            return SCALAR_TOKENS[token.type](name, token.value)
        if token.type in ARRAY_TOKENS:
            return self.parse_array(name, ARRAY_TOKENS[token.type])
        if token.type is TokenType.LIST_ARRAY:
            return self.parse_list(name, token)
        if token.type is TokenType.COMPOUND_BEGIN:
            return self.parse_compound(token, name)
        raise SNBTSyntaxError(f"expected a value, got {_describe(token)}", token.position)

    def parse_array(self, name: str, tag_class: type) -> Tag:
        values = []
        while True:
            token = self.next()
            if token.type is TokenType.END_ARRAY:
                break
            if token.type not in INTEGER_TOKENS:
                raise SNBTSyntaxError(
                    f"expected an integer in {tag_class.__name__}, got {_describe(token)}",
                    token.position
                )
            values.append(token.value)
        return tag_class(name, values)

    def parse_list(self, name: str, begin: Token) -> Tag:
        children = []
        self.enter(begin)
        while True:
            token = self.next()
            if token.type is TokenType.END_ARRAY:
                break
            children.append(self.parse_object(token))
        self.leave()

        if not children:
            return TAG_List(name, tagID=TagKind.END)
        if any(child.tid != children[0].tid for child in children):
            raise FormatError(f"lists must contain only the same child type (list at position {begin.position})")
        return TAG_List(name, children)

    def parse_compound(self, token: Token, name: str) -> Tag:
        if token.type is not TokenType.COMPOUND_BEGIN:
            raise SNBTSyntaxError(f"expected '{{', got {_describe(token)}", token.position)
        compound = TAG_Compound(name)
        self.enter(token)
        while True:
            token = self.next()
            if token.type is TokenType.COMPOUND_END:
                break
            if token.type is not TokenType.IDENTIFIER:
                raise SNBTSyntaxError(f"expected a named tag or '}}', got {_describe(token)}", token.position)
            compound.append(self.parse_object(token))
        self.leave()
        return compound


def parse(text: str, allow_trailing: bool = False) -> Tag:
    """ Parse an SNBT document and return its root tag

    Args:

        text::str
            The SNBT source.

        allow_trailing::bool
            Ignore anything after the first complete object instead of
            raising SNBTSyntaxError.
    """
    if text is None:
        raise TypeError("SNBT text cannot be None")
    return _Parser(tokenize(text), len(text)).parse_document(allow_trailing)


loads = parse


def parse_file(filename: str, allow_trailing: bool = False) -> Tag:
    """ Parse a UTF-8 encoded SNBT file """
    with open(filename, 'r', encoding='utf-8') as f:
        return parse(f.read(), allow_trailing=allow_trailing)


# ---------------------------------------------------------------------------
# Writing SNBT

BARE_NAME = re.compile(r"[A-Za-z0-9_\-]+\Z")


def quote(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def format_name(name: str) -> str:
    return name if BARE_NAME.match(name) else quote(name)


def format_float(value: float) -> str:
    """ Positional notation, always with a decimal point; the tokenizer has no exponents """
    if not math.isfinite(value):
        raise FormatError(f"{value!r} has no SNBT representation")
    text = format(Decimal(repr(value)), 'f')
    if '.' not in text:
        text += '.0'
    return text


def _format_array(prefix: str, suffix: str) -> Callable[[Tag], str]:
    def format_array(tag: Tag) -> str:
        return f"[{prefix};" + ",".join(f"{value}{suffix}" for value in tag.payload) + "]"
    return format_array


def _format_end(tag: Tag) -> str:
    raise FormatError("TAG_End has no SNBT representation")


def _format_list(tag: TAG_List) -> str:
    return "[" + ",".join(_format_payload(child) for child in tag.payload) + "]"


def _format_compound(tag: TAG_Compound) -> str:
    # Compound children are always written with a name; an unnamed child gets
    # the empty name, same as in binary form.
    children = (
        format_name("" if child.name is None else child.name) + ":" + _format_payload(child)
        for child in tag.payload
    )
    return "{" + ",".join(children) + "}"


PAYLOAD_FORMATTERS: Dict[TagKind, Callable[[Tag], str]] = {
    TagKind.END: _format_end,
    TagKind.BYTE: lambda tag: f"{tag.payload}b",
    TagKind.SHORT: lambda tag: f"{tag.payload}s",
    TagKind.INT: lambda tag: f"{tag.payload}",
    TagKind.LONG: lambda tag: f"{tag.payload}L",
    TagKind.FLOAT: lambda tag: format_float(tag.payload) + "f",
    TagKind.DOUBLE: lambda tag: format_float(tag.payload) + "d",
    TagKind.BYTE_ARRAY: _format_array("B", "b"),
    TagKind.STRING: lambda tag: quote(tag.payload),
    TagKind.LIST: _format_list,
    TagKind.COMPOUND: _format_compound,
    TagKind.INT_ARRAY: _format_array("I", ""),
    TagKind.LONG_ARRAY: _format_array("L", "L"),
}


def _format_payload(tag: Tag) -> str:
    return PAYLOAD_FORMATTERS[tag.tid](tag)


def stringify(tag: Tag) -> str:
    """ Return the canonical SNBT text of a tree (no whitespace)

    The root's name, if it has one, is written as a prefix.
    """
    prefix = "" if tag.name is None else format_name(tag.name) + ":"
    return prefix + _format_payload(tag)


dumps = stringify
