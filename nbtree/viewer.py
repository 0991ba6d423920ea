# -*- coding: utf-8 -*-
""" Navigate an NBT file

    nbtviewer <filename> [--snbt | --json | --pretty]

Binary NBT files may be gzip, zlib or not compressed at all. Files ending in
.snbt are parsed as SNBT text instead.
"""

import sys
from typing import List, Optional, TextIO

from . import jsonconv, nbt, snbt
from .errors import NBTError
from .tags import Tag, TagIterable, TagIterableNumeric, TAG_List, TAG_TYPES

line_template = "{:<32} {:>3} {:>5}B {:>24} = {}"
header_template = "{:<32} {:>3} {:>5}  {:>24} = {}"
max_values_per_line = 16

OUTPUT_FORMATS = ("--table", "--snbt", "--json", "--pretty")


def pretty(tag: Tag, indent: str = "    ", level: int = 0) -> str:
    """ Return the tree as indented lines of str(tag), children between braces
    """
    space = indent * level
    lines = [space + str(tag)]
    if isinstance(tag, TagIterable):
        lines.append(space + "{")
        for child in tag.payload:
            lines.append(pretty(child, indent, level + 1))
        lines.append(space + "}")
    return "\n".join(lines)


def print_nbt(tag: Tag, stream: TextIO = None, level: int = 0, parent: Optional[Tag] = None):
    """ Print a table of every tag in the tree: type, depth, encoded size, name, value
    """
    stream = sys.stdout if stream is None else stream
    padding = "  " * level

    tagtype = tag.__class__.__name__
    size = str(nbt.serialized_size(tag, list_element=isinstance(parent, TAG_List)))

    # TAG_List stores unnamed tags
    name = "" if tag.name is None else tag.name

    # value (typically the payload or meta about an iterable)
    if isinstance(tag, TagIterable):
        value = tag.describe()
        if isinstance(tag, TAG_List):
            value += f" of type {TAG_TYPES[tag.tagID].__name__}"
    elif isinstance(tag, TagIterableNumeric):
        value = tag.describe()
    else:
        value = str(tag.payload)

    print(line_template.format(f"{padding}{tagtype}", level, size, name, value), file=stream)

    # Arrays store a huge number of primitives; print multiple per line.
    if isinstance(tag, TagIterableNumeric):
        values: List[str] = ["{:>3}".format(v) for v in tag.payload]
        for start in range(0, len(values), max_values_per_line):
            chunk = ' '.join(values[start:start + max_values_per_line])
            print(line_template.format(f"{padding}  int", level + 1, tag.width, "", chunk), file=stream)

    # Then print the branches of the branch:
    if isinstance(tag, TagIterable):
        for child in tag.payload:
            print_nbt(child, stream, level + 1, tag)


def print_table(tag: Tag, stream: TextIO = None):
    stream = sys.stdout if stream is None else stream
    print(header_template.format("TYPE", "LVL", "SIZE", "NAME", "VALUE"), file=stream)
    print('-' * (32 + 1 + 3 + 1 + 5 + 2 + 24 + 2), file=stream)
    print_nbt(tag, stream)


def load(filename: str) -> Tag:
    """ SNBT or binary NBT (compressed or not) accepted """
    if filename.endswith(".snbt"):
        return snbt.parse_file(filename)
    return nbt.deserialize_file(filename)


def print_nbt_file(filename: str, output_format: str = "--table", stream: TextIO = None):
    stream = sys.stdout if stream is None else stream
    tree = load(filename)

    if output_format == "--snbt":
        print(snbt.stringify(tree), file=stream)
    elif output_format == "--json":
        print(jsonconv.to_json(tree, pretty=True), file=stream)
    elif output_format == "--pretty":
        print(pretty(tree), file=stream)
    else:
        print_table(tree, stream)


def main(argv: List[str] = None):
    argv = sys.argv[1:] if argv is None else argv

    # nbtviewer <filename> [--snbt|--json|--pretty]
    try:
        filename = argv[0]
    except IndexError:
        print("! filename required", file=sys.stderr)
        sys.exit(1)

    output_format = argv[1] if len(argv) > 1 else "--table"
    if output_format not in OUTPUT_FORMATS:
        print(f"! unknown output format {output_format}; expected one of {', '.join(OUTPUT_FORMATS)}", file=sys.stderr)
        sys.exit(1)

    try:
        print_nbt_file(filename, output_format)
    except BrokenPipeError:
        pass  # permits e.g. `nbtviewer <file> | head`
    except (NBTError, OSError) as e:
        print(f"! {filename}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
