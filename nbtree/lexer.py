# -*- coding: utf-8 -*-
""" SNBT tokenizer

Turns SNBT source text into a sequence of typed tokens. The rules are tried at
every position and the longest match wins; on a tie, the rule listed first in
RULES wins. That ordering is what separates a compound key from a bare string:
a quoted span or a bare word is only an IDENTIFIER when a `:` follows it
immediately.

Tokenizing never fails. Text that doesn't fit any rule degrades to STRING or
CHAR tokens and the parser decides whether that's an error.
"""

from enum import Enum
import re
from typing import Any, Callable, Iterator, List, NamedTuple, Optional, Tuple


class TokenType(Enum):
    COMPOUND_BEGIN = "compound_begin"
    COMPOUND_END = "compound_end"
    IDENTIFIER = "identifier"
    STRING = "string"
    SEPARATOR = "separator"
    COMMA = "comma"
    BYTE_ARRAY = "byte_array"
    INT_ARRAY = "int_array"
    LONG_ARRAY = "long_array"
    LIST_ARRAY = "list_array"
    END_ARRAY = "end_array"
    FLOAT = "float"
    DOUBLE = "double"
    BYTE = "byte"
    SHORT = "short"
    LONG = "long"
    INT = "int"
    WHITESPACE = "whitespace"
    CHAR = "char"


class Token(NamedTuple):
    type: TokenType
    value: Any
    position: int


_ESCAPE = re.compile(r"\\(.)", re.DOTALL)


def unquote(span: str) -> str:
    """ Strip the quotes off a quoted span and resolve backslash escapes """
    return _ESCAPE.sub(r"\1", span[1:-1])


def _strip_suffix(literal: str) -> str:
    return literal[:-1] if literal[-1].isalpha() else literal


_QUOTED = r"""(?:"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')"""
_DECIMAL = r"-?[0-9]+\.[0-9]+"
_INTEGER = r"-?[0-9]+"

# (token type, pattern, converter from matched text to token value)
RULES: List[Tuple[TokenType, Any, Optional[Callable[[str], Any]]]] = [
    (TokenType.COMPOUND_BEGIN, re.compile(r"\{\s*"), None),
    (TokenType.COMPOUND_END, re.compile(r"\s*\}"), None),
    (TokenType.IDENTIFIER, re.compile(_QUOTED + r"(?=:)", re.DOTALL), unquote),
    (TokenType.IDENTIFIER, re.compile(r"[A-Za-z0-9_\-]+(?=:)"), str),
    (TokenType.STRING, re.compile(_QUOTED, re.DOTALL), unquote),
    (TokenType.SEPARATOR, re.compile(r"\s*:\s*"), None),
    (TokenType.COMMA, re.compile(r"\s*,\s*"), None),
    (TokenType.BYTE_ARRAY, re.compile(r"\[B;\s*"), None),
    (TokenType.INT_ARRAY, re.compile(r"\[I;\s*"), None),
    (TokenType.LONG_ARRAY, re.compile(r"\[L;\s*"), None),
    (TokenType.LIST_ARRAY, re.compile(r"\[\s*"), None),
    (TokenType.END_ARRAY, re.compile(r"\s*\]"), None),
    (TokenType.FLOAT, re.compile(r"(?:%s|%s)[fF]" % (_DECIMAL, _INTEGER)), lambda s: float(s[:-1])),
    (TokenType.DOUBLE, re.compile(r"%s[dD]?|%s[dD]" % (_DECIMAL, _INTEGER)), lambda s: float(_strip_suffix(s))),
    (TokenType.BYTE, re.compile(_INTEGER + r"[bB]"), lambda s: int(s[:-1])),
    (TokenType.SHORT, re.compile(_INTEGER + r"[sS]"), lambda s: int(s[:-1])),
    (TokenType.LONG, re.compile(_INTEGER + r"[lL]"), lambda s: int(s[:-1])),
    (TokenType.INT, re.compile(_INTEGER), int),
    (TokenType.WHITESPACE, re.compile(r"\s+"), None),
    # Bare words: anything up to whitespace or a structural character
    (TokenType.STRING, re.compile(r"""[^\s{}\[\]:,"']+"""), str),
    (TokenType.CHAR, re.compile(r".", re.DOTALL), str),
]


class Tokenizer:
    """ A restartable sequence of tokens

    Each iteration scans the text from the beginning, so a Tokenizer can be
    iterated any number of times with the same result.
    """

    def __init__(self, text: str, rules=RULES):
        self.text = text
        self.rules = rules

    def __iter__(self) -> Iterator[Token]:
        text = self.text
        position = 0
        while position < len(text):
            best = None
            for token_type, pattern, convert in self.rules:
                match = pattern.match(text, position)
                if match is None:
                    continue
                # Earlier rules win ties, so only a strictly longer match
                # replaces the current best.
                if best is None or match.end() > best[1].end():
                    best = (token_type, match, convert)
            token_type, match, convert = best
            literal = match.group()
            yield Token(token_type, literal if convert is None else convert(literal), position)
            position = match.end()

    def __repr__(self) -> str:
        return f"<Tokenizer text={self.text!r}>"


def tokenize(text: str) -> List[Token]:
    """ Tokenize all of `text` and return the tokens as a list """
    return list(Tokenizer(text))
