# -*- coding: utf-8 -*-
""" NBT Serializer and Deserializer

The implementation is based on the descriptions of the NBT file layout from
these two docs:

https://web.archive.org/web/20191006152706/https://minecraft.gamepedia.com/NBT_format
https://web.archive.org/web/20110723210920/http://www.minecraft.net/docs/NBT.txt

Short summary of the layout:

    - A tag is written as its 1-byte tag id, its name (2-byte big endian
      length + UTF-8 bytes), then its payload. All numbers are big endian.

    - The elements of a TAG_List are written as bare payloads. The list
      header gives their tag id once (1 byte) and their count (4-byte
      signed int); elements have no tag id and no name of their own.

    - A TAG_Compound is a run of complete tags terminated by TAG_End, a
      single zero byte with no name or payload.

    - The string length is the number of UTF-8 *bytes*, not characters, and
      is capped at 65535.

A file is one root tag (in practice a TAG_Compound), which may be gzip or
zlib compressed. See decompress() and serialize_file().
"""

from enum import IntEnum
import gzip
import io
import logging
import struct
from typing import BinaryIO, Callable, Dict
import warnings
import zlib

from .errors import FormatError, NBTWarning, RangeError, TagTypeError
from .tags import (
    MAX_DEPTH,
    Tag,
    TagKind,
    TAG_Byte,
    TAG_Byte_Array,
    TAG_Compound,
    TAG_Double,
    TAG_End,
    TAG_Float,
    TAG_Int,
    TAG_Int_Array,
    TAG_List,
    TAG_Long,
    TAG_Long_Array,
    TAG_Short,
    TAG_String,
)

logger = logging.getLogger(__name__)

TAG_ID = struct.Struct(">B")
STRING_SIZE = struct.Struct(">H")  # unsigned short
ARRAY_SIZE = struct.Struct(">i")   # signed int, but never negative

MAX_STRING_SIZE = 0xffff

SCALAR_FORMATS: Dict[TagKind, struct.Struct] = {
    TagKind.BYTE: struct.Struct(">b"),
    TagKind.SHORT: struct.Struct(">h"),
    TagKind.INT: struct.Struct(">i"),
    TagKind.LONG: struct.Struct(">q"),
    TagKind.FLOAT: struct.Struct(">f"),
    TagKind.DOUBLE: struct.Struct(">d"),
}

# struct format character of each array element
ARRAY_ELEMENT_FORMATS: Dict[TagKind, str] = {
    TagKind.BYTE_ARRAY: "b",
    TagKind.INT_ARRAY: "i",
    TagKind.LONG_ARRAY: "q",
}


# ---------------------------------------------------------------------------
# Serialization


def encode_string(value: str) -> bytes:
    """ Return the length-prefixed UTF-8 representation of a name or string

    Strings that can't be encoded as UTF-8 (lone surrogates, typically from
    data that was decoded with surrogateescape) are not fatal: a warning is
    emitted and the unencodable characters are replaced.
    """
    try:
        encoded = value.encode('utf-8')
    except UnicodeEncodeError as e:
        warnings.warn(f"invalid UTF-8 characters in string {value!r}: {e.reason}", NBTWarning)
        encoded = value.encode('utf-8', errors='replace')
    if len(encoded) > MAX_STRING_SIZE:
        raise RangeError(f"string is {len(encoded)} bytes long when UTF-8 encoded; the limit is {MAX_STRING_SIZE}")
    return STRING_SIZE.pack(len(encoded)) + encoded


def _write_tag(sink: BinaryIO, tag: Tag) -> int:
    """ Write a complete tag (id, name, payload) and return the bytes written

    This is how root tags and the children of a TAG_Compound are written.
    """
    if tag.tid == TagKind.END:
        sink.write(b'\x00')
        return 1
    # Named tags with None-valued names are the same as empty-string valued
    # named tags.
    header = TAG_ID.pack(tag.tid) + encode_string("" if tag.name is None else tag.name)
    sink.write(header)
    return len(header) + _write_payload(sink, tag)


def _write_payload(sink: BinaryIO, tag: Tag) -> int:
    """ Write only the payload of a tag and return the bytes written

    This is all that's written for an element of a TAG_List.
    """
    try:
        writer = PAYLOAD_WRITERS[tag.tid]
    except KeyError:
        raise TagTypeError(f"cannot serialize {tag!r}") from None
    return writer(sink, tag)


def _scalar_writer(fmt: struct.Struct) -> Callable[[BinaryIO, Tag], int]:
    def write_scalar(sink: BinaryIO, tag: Tag) -> int:
        sink.write(fmt.pack(tag.payload))
        return fmt.size
    return write_scalar


def _array_writer(element_format: str) -> Callable[[BinaryIO, Tag], int]:
    def write_array(sink: BinaryIO, tag: Tag) -> int:
        count = len(tag.payload)
        data = ARRAY_SIZE.pack(count) + struct.pack(f">{count}{element_format}", *tag.payload)
        sink.write(data)
        return len(data)
    return write_array


def _write_end_payload(sink: BinaryIO, tag: Tag) -> int:
    return 0


def _write_string_payload(sink: BinaryIO, tag: TAG_String) -> int:
    data = encode_string(tag.payload)
    sink.write(data)
    return len(data)


def _write_list_payload(sink: BinaryIO, tag: TAG_List) -> int:
    header = TAG_ID.pack(tag.tagID) + ARRAY_SIZE.pack(len(tag.payload))
    sink.write(header)
    written = len(header)
    for child in tag.payload:
        if child.tid != tag.tagID:
            raise TagTypeError(f"TAG_List of {TagKind(tag.tagID).name} contains a {child.__class__.__name__}")
        written += _write_payload(sink, child)
    return written


def _write_compound_payload(sink: BinaryIO, tag: TAG_Compound) -> int:
    written = 0
    for child in tag.payload:
        if child.tid == TagKind.END:
            raise TagTypeError("TAG_End can't be written as a TAG_Compound child")
        written += _write_tag(sink, child)
    sink.write(b'\x00')
    return written + 1


PAYLOAD_WRITERS: Dict[TagKind, Callable[[BinaryIO, Tag], int]] = {
    TagKind.END: _write_end_payload,
    TagKind.BYTE: _scalar_writer(SCALAR_FORMATS[TagKind.BYTE]),
    TagKind.SHORT: _scalar_writer(SCALAR_FORMATS[TagKind.SHORT]),
    TagKind.INT: _scalar_writer(SCALAR_FORMATS[TagKind.INT]),
    TagKind.LONG: _scalar_writer(SCALAR_FORMATS[TagKind.LONG]),
    TagKind.FLOAT: _scalar_writer(SCALAR_FORMATS[TagKind.FLOAT]),
    TagKind.DOUBLE: _scalar_writer(SCALAR_FORMATS[TagKind.DOUBLE]),
    TagKind.BYTE_ARRAY: _array_writer(ARRAY_ELEMENT_FORMATS[TagKind.BYTE_ARRAY]),
    TagKind.STRING: _write_string_payload,
    TagKind.LIST: _write_list_payload,
    TagKind.COMPOUND: _write_compound_payload,
    TagKind.INT_ARRAY: _array_writer(ARRAY_ELEMENT_FORMATS[TagKind.INT_ARRAY]),
    TagKind.LONG_ARRAY: _array_writer(ARRAY_ELEMENT_FORMATS[TagKind.LONG_ARRAY]),
}


def serialize_to(tag: Tag, sink: BinaryIO) -> int:
    """ Serialize a tree to a writable binary stream

    Returns the number of bytes written.
    """
    return _write_tag(sink, tag)


def serialize(tag: Tag) -> bytes:
    """ Serialize an NBT tree and return uncompressed bytes
    """
    buffer = io.BytesIO()
    serialize_to(tag, buffer)
    return buffer.getvalue()


class _CountingSink:
    """ Discards everything written to it """

    def write(self, data: bytes) -> int:
        return len(data)


def serialized_size(tag: Tag, list_element: bool = False) -> int:
    """ Number of bytes the tag takes up when serialized

    With list_element, only the payload is counted (no tag id or name), as
    for an element of a TAG_List.
    """
    sink = _CountingSink()
    if list_element:
        return _write_payload(sink, tag)
    return _write_tag(sink, tag)


# ---------------------------------------------------------------------------
# Deserialization


class _Reader:
    """ Checked reads from a binary stream

    Every read must return exactly the number of bytes asked for; anything
    less means the data is truncated. The offset is kept for error messages.
    """

    __slots__ = ("source", "offset", "depth")

    def __init__(self, source: BinaryIO):
        self.source = source
        self.offset = 0
        self.depth = 0

    def read(self, size: int) -> bytes:
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self.source.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        if remaining:
            raise FormatError(
                f"unexpected end of data: wanted {size} bytes, got {size - remaining}",
                self.offset
            )
        self.offset += size
        return b''.join(chunks)

    def unpack(self, fmt: struct.Struct):
        return fmt.unpack(self.read(fmt.size))[0]

    def read_kind(self) -> TagKind:
        offset = self.offset
        tid = self.unpack(TAG_ID)
        try:
            return TagKind(tid)
        except ValueError:
            raise FormatError(f"invalid tag id 0x{tid:02x}", offset) from None

    def read_count(self) -> int:
        offset = self.offset
        count = self.unpack(ARRAY_SIZE)
        if count < 0:
            raise FormatError(f"negative element count {count}", offset)
        return count

    def read_string(self) -> str:
        size = self.unpack(STRING_SIZE)
        if size == 0:
            return ""
        offset = self.offset
        data = self.read(size)
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            warnings.warn(f"invalid UTF-8 in string at byte offset {offset}: {e.reason}", NBTWarning)
            return data.decode('utf-8', errors='replace')

    def enter(self):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise FormatError(f"tags nested deeper than {MAX_DEPTH} levels", self.offset)

    def leave(self):
        self.depth -= 1


def _scalar_reader(tag_class: type) -> Callable[[_Reader, str], Tag]:
    fmt = SCALAR_FORMATS[tag_class.tid]

    def read_scalar(reader: _Reader, name) -> Tag:
        return tag_class(name, reader.unpack(fmt))
    return read_scalar


def _array_reader(tag_class: type) -> Callable[[_Reader, str], Tag]:
    element_format = ARRAY_ELEMENT_FORMATS[tag_class.tid]
    width = struct.calcsize(f">{element_format}")

    def read_array(reader: _Reader, name) -> Tag:
        count = reader.read_count()
        data = reader.read(count * width)
        return tag_class(name, struct.unpack(f">{count}{element_format}", data))
    return read_array


def _read_end_payload(reader: _Reader, name) -> Tag:
    return TAG_End()


def _read_string_payload(reader: _Reader, name) -> Tag:
    return TAG_String(name, reader.read_string())


def _read_list_payload(reader: _Reader, name) -> Tag:
    offset = reader.offset
    child_kind = reader.read_kind()
    count = reader.read_count()
    if child_kind == TagKind.END and count:
        raise FormatError(f"TAG_List of TAG_End can't have {count} elements", offset)

    # The size of each element isn't known ahead of time, only how many
    # there are. They have no tag id or name.
    read_child = PAYLOAD_READERS[child_kind]
    children = []
    reader.enter()
    for _ in range(count):
        children.append(read_child(reader, None))
    reader.leave()
    return TAG_List(name, children, tagID=child_kind)


def _read_compound_payload(reader: _Reader, name) -> Tag:
    compound = TAG_Compound(name)
    reader.enter()
    while True:
        kind = reader.read_kind()
        if kind == TagKind.END:
            break
        child_name = reader.read_string()
        compound.append(PAYLOAD_READERS[kind](reader, child_name))
    reader.leave()
    return compound


PAYLOAD_READERS: Dict[TagKind, Callable[[_Reader, str], Tag]] = {
    TagKind.END: _read_end_payload,
    TagKind.BYTE: _scalar_reader(TAG_Byte),
    TagKind.SHORT: _scalar_reader(TAG_Short),
    TagKind.INT: _scalar_reader(TAG_Int),
    TagKind.LONG: _scalar_reader(TAG_Long),
    TagKind.FLOAT: _scalar_reader(TAG_Float),
    TagKind.DOUBLE: _scalar_reader(TAG_Double),
    TagKind.BYTE_ARRAY: _array_reader(TAG_Byte_Array),
    TagKind.STRING: _read_string_payload,
    TagKind.LIST: _read_list_payload,
    TagKind.COMPOUND: _read_compound_payload,
    TagKind.INT_ARRAY: _array_reader(TAG_Int_Array),
    TagKind.LONG_ARRAY: _array_reader(TAG_Long_Array),
}


def deserialize_from(source: BinaryIO) -> Tag:
    """ Read exactly one tag (and its children) from a readable binary stream

    The stream is left positioned after the tag.
    """
    reader = _Reader(source)
    kind = reader.read_kind()
    if kind == TagKind.END:
        return TAG_End()
    name = reader.read_string()
    return PAYLOAD_READERS[kind](reader, name)


def deserialize(nbt_data: bytes) -> Tag:
    """ Deserialize uncompressed NBT data and return the root tag

    All of the data must belong to the root tag.
    """
    stream = io.BytesIO(nbt_data)
    tag = deserialize_from(stream)
    trailing = len(stream.getbuffer()) - stream.tell()
    if trailing:
        raise FormatError(f"{trailing} unexpected bytes after the root tag", stream.tell())
    return tag


# ---------------------------------------------------------------------------
# Files and compression


class Compression(IntEnum):
    NONE = 0
    GZIP = 1
    ZLIB = 2


class CompressionLevel(IntEnum):
    DEFAULT = zlib.Z_DEFAULT_COMPRESSION
    NONE = 0
    FASTEST = 1
    OPTIMAL = 9


# The first byte of a file tells us how (or whether) it's compressed.
# https://www.onicos.com/staff/iz/formats/gzip.html
GZIP_MAGIC = 0x1f
ZLIB_MAGIC = 0x78
UNCOMPRESSED_MAGIC = TagKind.COMPOUND


def decompress(file_data: bytes) -> bytes:
    """ Return uncompressed serialized NBT from gzip, zlib or raw file data
    """
    if not file_data:
        raise FormatError("invalid NBT format: no data")

    magic = file_data[0]
    if magic == GZIP_MAGIC:
        logger.debug("decompressing %d bytes of gzip data", len(file_data))
        try:
            return gzip.decompress(file_data)
        except (OSError, EOFError, zlib.error) as e:
            raise FormatError(f"corrupt gzip data: {e}") from e

    if magic == ZLIB_MAGIC:
        logger.debug("decompressing %d bytes of zlib data", len(file_data))
        try:
            return zlib.decompress(file_data)
        except zlib.error as e:
            raise FormatError(f"corrupt zlib data: {e}") from e

    if magic == UNCOMPRESSED_MAGIC:
        logger.debug("%d bytes of uncompressed data", len(file_data))
        return file_data

    raise FormatError(f"invalid NBT format: unrecognized leading byte 0x{magic:02x}", 0)


def compress(data: bytes, compression: Compression = Compression.GZIP,
             level: CompressionLevel = CompressionLevel.DEFAULT) -> bytes:
    """ Wrap serialized NBT in the requested compression envelope
    """
    compression = Compression(compression)
    level = CompressionLevel(level)
    if compression == Compression.GZIP:
        return gzip.compress(data, compresslevel=level)
    if compression == Compression.ZLIB:
        return zlib.compress(data, level)
    return data


def extract_serialized_bytes(filename: str) -> bytes:
    """ Return uncompressed serialized NBT
    """
    with open(filename, 'rb') as nbt_file:
        file_data = nbt_file.read()
    logger.debug("read %d bytes from %s", len(file_data), filename)
    return decompress(file_data)


def deserialize_file(filename: str) -> Tag:
    """ Deserialize a GZip/ZLib compressed or uncompressed NBT file
    """
    serialized_nbt_data = extract_serialized_bytes(filename)
    return deserialize(serialized_nbt_data)


def serialize_file(filename: str, tag: Tag, compression: Compression = Compression.GZIP,
                   level: CompressionLevel = CompressionLevel.DEFAULT) -> int:
    """ Serialize an NBT tree, optionally compress the output, and write it to a file

    Returns the number of bytes written to the file.
    """
    data: bytes = compress(serialize(tag), compression, level)
    with open(filename, 'wb') as f:
        f.write(data)
    logger.debug("wrote %d bytes to %s (%s)", len(data), filename, Compression(compression).name)
    return len(data)
