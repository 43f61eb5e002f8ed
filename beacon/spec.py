"""
BEACON Link Dump Format
=======================

Layout:
    \\uFEFF                      <- Optional byte order mark
    #FORMAT: BEACON              <- Meta lines: '#' NAME separator value
    #PREFIX: http://example.org/
    #TARGET: http://example.com/{ID}
                                 <- Blank line(s) end the header
    source|target                <- Link lines (RFC dialect)
    source|annotation|target
    source

Dialects:
    - RFC: draft-003 of the BEACON format RFC submitted December 2017
      (https://gbv.github.io/beaconspec/beacon.html). A link line holds
      one to three '|'-delimited fields.
    - URLTeam: SHORTCODE|TARGET. Any further '|' characters on a line are
      part of TARGET. With a fixed shortcode width, a target may continue
      over several physical lines; a continuation line is any line that
      does not carry '|' at the shortcode offset.

Meta Fields:
    - NAME is one or more of A-Z
    - Separator is ':', space, or tab
    - Leading spaces/tabs of the value are dropped, the rest is verbatim

Line Breaks:
    - "\\n" or "\\r\\n"; a lone "\\r" is content
"""

from __future__ import annotations

import enum

from beacon.errors import LinkLineError, MetaLineError

BOM = "\ufeff"
META_PREFIX = "#"
BAR = "|"
META_SEPARATORS = frozenset((":", " ", "\t"))

# RFC link lines split into at most this many parts; the last one only
# exists when there are too many separators.
MAX_RFC_PARTS = 4

# Safety limits
MAX_META_FIELDS = 1_000        # Max header lines (prevents header-only DoS files)
DEFAULT_VIEW_LIMIT = 10_000    # Links loaded into memory by load() / the viewer

# Dump file suffixes that are decompressed on open
COMPRESSED_SUFFIXES = {
    ".gz": "gzip",
    ".bz2": "bz2",
    ".xz": "lzma",
    ".lzma": "lzma",
}


class Format(enum.Enum):
    """Link line dialect, chosen once when a reader is constructed."""

    RFC = "rfc"
    URLTEAM = "urlteam"



def drop_line_break(line: str) -> str:
    """Strip one trailing "\\n" or "\\r\\n"."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def trim_left_space(text: str) -> str:
    return text.lstrip(" \t")


def is_blank(line: str) -> bool:
    return trim_left_space(line) == ""


def split_meta(text: str) -> tuple[str, str]:
    """Split the text after a leading '#' into (name, value).

    The name is scanned while characters are A-Z and must end at ':',
    space, or tab. Raises MetaLineError for any other character, for an
    empty name, and for text with no separator at all.
    """
    for i, ch in enumerate(text):
        if "A" <= ch <= "Z":
            continue
        if ch in META_SEPARATORS:
            if i == 0:
                raise MetaLineError(f"meta field name is empty: {text!r}")
            return text[:i], trim_left_space(text[i + 1:])
        raise MetaLineError(f"invalid character {ch!r} in meta field: {text!r}")
    raise MetaLineError(f"meta line missing value: {text!r}")


def split_rfc_link(line: str) -> tuple[str, str, str]:
    """Split an RFC link line into (source, annotation, target).

    Two fields are read as source and target. The draft also allows
    reading them as source and annotation; this reader does not.
    """
    parts = line.split(BAR, MAX_RFC_PARTS - 1)
    if len(parts) == 1:
        return parts[0], "", ""
    if len(parts) == 2:
        return parts[0], "", parts[1]
    if len(parts) == 3:
        return parts[0], parts[1], parts[2]
    raise LinkLineError(f"link line has too many bar separators: {line!r}")


def starts_record(line: str, shortcode_len: int) -> bool:
    """True if a raw URLTeam line has '|' right after a fixed-width shortcode."""
    return len(line) > shortcode_len and line[shortcode_len] == BAR
