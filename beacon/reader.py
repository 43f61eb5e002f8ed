"""
BEACON Reader - Single-pass streaming decoder for link dumps.

Streaming features:
  - Reads one line at a time from a binary (or text) handle
  - At most one line of lookahead is held, for the header/link handoff
    and for multi-line URLTeam targets
  - Memory use is bounded by the longest record, never by the dump size
  - Compressed dumps (.gz, .bz2, .xz) are decompressed on the fly

Error reporting:
  - Every decoding failure is a BeaconError carrying the 1-based line
  - The end of the dump is a plain None from read(), never an exception
  - No resynchronization: after an error the reader should be discarded
"""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import lzma
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Callable, Iterator

from beacon.document import BeaconDocument, Link, MetaField
from beacon.errors import BeaconError, LinkLineError, MetaLineError
from beacon.spec import (
    BOM, META_PREFIX, COMPRESSED_SUFFIXES, DEFAULT_VIEW_LIMIT, MAX_META_FIELDS,
    Format, drop_line_break, is_blank, split_meta, split_rfc_link, starts_record,
)

log = logging.getLogger(__name__)

_OPENERS: dict[str, Callable[..., IO[bytes]]] = {
    "gzip": gzip.open,
    "bz2": bz2.open,
    "lzma": lzma.open,
}

# Failures of the underlying source or its decompressor. A truncated
# archive surfaces as EOFError, corrupt gzip data as zlib.error, corrupt
# xz data as lzma.LZMAError.
_SOURCE_ERRORS = (ValueError, OSError, EOFError, zlib.error, lzma.LZMAError)


class LineCursor:
    """Forward-only line source with a single pushback slot.

    Lines are returned with their terminator ("raw") or without it. A line
    taken from the pushback slot is not counted again.
    """

    def __init__(self, handle: IO, encoding: str = "utf-8", errors: str = "strict") -> None:
        self._handle = handle
        self._encoding = encoding
        self._errors = errors
        self._slot: str | None = None
        self.line = 0

    def next_raw(self) -> str | None:
        """Next line including its line break, or None at end of stream."""
        if self._slot is not None:
            line, self._slot = self._slot, None
            return line
        data = self._handle.readline()
        if not data:
            return None
        self.line += 1
        if isinstance(data, bytes):
            data = data.decode(self._encoding, self._errors)
        return data

    def next_line(self) -> str | None:
        """Next line with the line break stripped, or None at end of stream."""
        line = self.next_raw()
        if line is None:
            return None
        return drop_line_break(line)

    def push_back(self, line: str) -> None:
        """Return a raw line so the next read yields it again."""
        if self._slot is not None:
            raise RuntimeError("LineCursor already holds a pushed back line")
        self._slot = line

    @property
    def has_pushback(self) -> bool:
        return self._slot is not None


# =============================================================================
# Link decoders (one per dialect)
# =============================================================================

def _read_link_rfc(cursor: LineCursor, shortcode_len: int) -> Link | None:
    line = cursor.next_line()
    if line is None:
        return None
    source, annotation, target = split_rfc_link(line)
    return Link(source, target, annotation)


def _read_link_urlteam(cursor: LineCursor, shortcode_len: int) -> Link | None:
    raw = cursor.next_raw()
    if raw is None:
        return None

    # Variable shortcode length: split at the first bar
    if shortcode_len <= 0:
        i = raw.find("|")
        if i == -1:
            raise LinkLineError(f"link line missing bar separator: {drop_line_break(raw)!r}")
        return Link(raw[:i], drop_line_break(raw[i + 1:]))

    # Fixed shortcode length
    if not starts_record(raw, shortcode_len):
        if "|" in raw:
            raise LinkLineError(
                f"shortcode not {shortcode_len} characters: {drop_line_break(raw)!r}"
            )
        raise LinkLineError(f"link line missing bar separator: {drop_line_break(raw)!r}")

    shortcode = raw[:shortcode_len]
    parts = [raw[shortcode_len + 1:]]
    # Absorb continuation lines until the next record starts
    while True:
        line = cursor.next_raw()
        if line is None:
            break
        if starts_record(line, shortcode_len):
            cursor.push_back(line)
            break
        parts.append(line)
    return Link(shortcode, drop_line_break("".join(parts)))


_DECODERS: dict[Format, Callable[[LineCursor, int], Link | None]] = {
    Format.RFC: _read_link_rfc,
    Format.URLTEAM: _read_link_urlteam,
}


class BeaconReader:
    """
    Streaming BEACON link dump reader.

    Usage:
        # Any binary handle
        reader = BeaconReader(handle)
        for field in reader.meta():
            print(field)
        while (link := reader.read()) is not None:
            print(link)

        # A file on disk (compressed or not), URLTeam dialect
        with BeaconReader.open("dump.txt.xz", Format.URLTEAM, shortcode_len=6) as reader:
            for link in reader:
                ...
    """

    def __init__(
        self,
        handle: IO,
        format: Format | str = Format.RFC,
        shortcode_len: int = 0,
        encoding: str = "utf-8",
        errors: str = "strict",
        max_meta_fields: int = MAX_META_FIELDS,
    ) -> None:
        format = Format(format)
        if shortcode_len < 0:
            raise ValueError(f"shortcode_len must not be negative: {shortcode_len}")
        if shortcode_len and format is not Format.URLTEAM:
            raise ValueError("shortcode_len only applies to URLTeam dumps")

        self._handle = handle
        self._cursor = LineCursor(handle, encoding, errors)
        self.format = format
        self.shortcode_len = shortcode_len
        self._decode = _DECODERS[format]
        self._max_meta_fields = max_meta_fields
        self._meta: list[MetaField] = []
        self._meta_read = False

    @classmethod
    def open(
        cls,
        path: str | Path,
        format: Format | str = Format.RFC,
        shortcode_len: int = 0,
        **kwargs,
    ) -> BeaconReader:
        """Open a dump file for streaming. Compressed files are picked by suffix."""
        path = Path(path)
        kind = COMPRESSED_SUFFIXES.get(path.suffix.lower())
        log.debug("opening %s (%s)", path, kind or "plain")
        handle = _OPENERS.get(kind, open)(path, "rb")
        try:
            return cls(handle, format, shortcode_len, **kwargs)
        except Exception:
            handle.close()
            raise

    @classmethod
    def parse(
        cls,
        data: bytes | str,
        format: Format | str = Format.RFC,
        shortcode_len: int = 0,
        **kwargs,
    ) -> BeaconReader:
        """Reader over an in-memory dump."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(io.BytesIO(data), format, shortcode_len, **kwargs)

    @classmethod
    def load(
        cls,
        path: str | Path,
        format: Format | str = Format.RFC,
        shortcode_len: int = 0,
        limit: int = DEFAULT_VIEW_LIMIT,
    ) -> BeaconDocument:
        """Read the header and the first ``limit`` links of a dump file."""
        with cls.open(path, format, shortcode_len) as reader:
            return reader.to_document(limit)

    @property
    def line(self) -> int:
        """Number of physical lines consumed from the source so far."""
        return self._cursor.line

    def meta(self) -> list[MetaField]:
        """Meta fields of the header, in file order.

        The header is scanned at most once; later calls return the same
        fields without touching the stream.
        """
        if not self._meta_read:
            self._meta_read = True
            with self._line_context():
                self._scan_meta()
            log.debug("header: %d meta fields, links start after line %d",
                      len(self._meta), self.line - self._cursor.has_pushback)
        return list(self._meta)

    def read(self) -> Link | None:
        """Next link, or None at the end of the dump."""
        if not self._meta_read:
            self.meta()
        with self._line_context():
            return self._decode(self._cursor, self.shortcode_len)

    def __iter__(self) -> Iterator[Link]:
        while True:
            link = self.read()
            if link is None:
                return
            yield link

    def to_document(self, limit: int = DEFAULT_VIEW_LIMIT) -> BeaconDocument:
        """Collect the header and up to ``limit`` of the remaining links."""
        doc = BeaconDocument(meta=self.meta())
        for link in self:
            if len(doc.links) >= limit:
                doc.truncated = True
                break
            doc.links.append(link)
        return doc

    @contextmanager
    def _line_context(self) -> Iterator[None]:
        try:
            yield
        except _SOURCE_ERRORS as exc:
            raise BeaconError(self._cursor.line, exc) from exc

    def _scan_meta(self) -> None:
        cursor = self._cursor
        raw = cursor.next_raw()
        if raw is None:
            return
        # Byte order mark permitted by section 3.1 of the draft
        if raw.startswith(BOM):
            raw = raw[len(BOM):]
            if not raw:
                return
        # Allow omitted header section
        if not raw.startswith(META_PREFIX):
            cursor.push_back(raw)
            return

        # Meta lines until the first blank line or non-'#' line
        while True:
            line = drop_line_break(raw)
            if is_blank(line):
                break
            if not line.startswith(META_PREFIX):
                cursor.push_back(raw)
                return
            if len(self._meta) >= self._max_meta_fields:
                raise MetaLineError(f"too many meta fields (max {self._max_meta_fields})")
            name, value = split_meta(line[len(META_PREFIX):])
            self._meta.append(MetaField(name, value))
            raw = cursor.next_raw()
            if raw is None:
                return

        # Consume the blank lines that end the header
        while True:
            raw = cursor.next_raw()
            if raw is None:
                return
            if not is_blank(drop_line_break(raw)):
                cursor.push_back(raw)
                return

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> BeaconReader:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def open_rfc(handle: IO) -> BeaconReader:
    """Reader for an RFC-dialect dump."""
    return BeaconReader(handle, Format.RFC)


def open_urlteam(handle: IO, shortcode_len: int = 0) -> BeaconReader:
    """Reader for a URLTeam dump. ``shortcode_len`` 0 means variable width."""
    return BeaconReader(handle, Format.URLTEAM, shortcode_len)
