"""
BEACON Converters - Stream links out of a dump into JSON, JSONL, CSV, TXT.

Every converter takes a BeaconReader and a text handle, writes as it
reads, and returns the number of links written:
  - to_json   {"meta": {...}, "links": [...]}
  - to_jsonl  one {"source", "annotation", "target"} object per line
  - to_csv    source,annotation,target rows
  - to_txt    "#NAME: value" header, blank line, rendered links

from_json reads a to_json export back into a BeaconDocument.
"""

from __future__ import annotations

import csv
import json
from typing import Any, TextIO

from beacon.document import BeaconDocument, Link, MetaField
from beacon.reader import BeaconReader
from beacon.spec import DEFAULT_VIEW_LIMIT


def _link_dict(link: Link) -> dict[str, str]:
    return {"source": link.source, "annotation": link.annotation, "target": link.target}


# =============================================================================
# JSON
# =============================================================================

def to_json(reader: BeaconReader, out: TextIO) -> int:
    """Write the dump as a single JSON object, one link per line of the array."""
    meta: dict[str, str] = {}
    for m in reader.meta():
        meta.setdefault(m.name, m.value)  # first wins
    out.write(f'{{"format": {json.dumps(reader.format.value)}, ')
    out.write(f'"meta": {json.dumps(meta, ensure_ascii=False)}, "links": [')
    count = 0
    for link in reader:
        out.write("\n  " if count == 0 else ",\n  ")
        out.write(json.dumps(_link_dict(link), ensure_ascii=False))
        count += 1
    out.write("\n]}\n" if count else "]}\n")
    return count


def from_json(json_str: str, limit: int = DEFAULT_VIEW_LIMIT) -> BeaconDocument:
    """Create a BeaconDocument from a to_json export.

    Validates the structure so a crafted file cannot smuggle non-string
    fields into links.
    """
    data: Any = json.loads(json_str)
    if not isinstance(data, dict):
        raise ValueError("Invalid BEACON JSON: expected a JSON object at top level")

    meta = data.get("meta", {})
    if not isinstance(meta, dict):
        raise ValueError("Invalid BEACON JSON: 'meta' must be a JSON object")
    links = data.get("links", [])
    if not isinstance(links, list):
        raise ValueError("Invalid BEACON JSON: 'links' must be an array")

    doc = BeaconDocument()
    for key, val in meta.items():
        if isinstance(key, str) and isinstance(val, str):
            doc.meta.append(MetaField(key, val))

    for item in links:
        if not isinstance(item, dict):
            continue
        fields = [item.get(k, "") for k in ("source", "target", "annotation")]
        if not all(isinstance(f, str) for f in fields):
            continue
        if len(doc.links) >= limit:
            doc.truncated = True
            break
        doc.links.append(Link(*fields))
    return doc


# =============================================================================
# JSON Lines
# =============================================================================

def to_jsonl(reader: BeaconReader, out: TextIO) -> int:
    """One JSON object per link. The header is not part of the output."""
    count = 0
    for link in reader:
        out.write(json.dumps(_link_dict(link), ensure_ascii=False))
        out.write("\n")
        count += 1
    return count


# =============================================================================
# CSV
# =============================================================================

def _escape_csv_formula(value: str) -> str:
    """Escape CSV formula injection characters (=, +, -, @, tab, CR, ;).

    Checks the first non-whitespace character so spreadsheet applications
    do not interpret a shortcode or URL as a formula.
    """
    stripped = value.lstrip()
    if stripped and stripped[0] in ("=", "+", "-", "@", "\t", "\r", ";"):
        return "'" + value
    return value


def to_csv(reader: BeaconReader, out: TextIO) -> int:
    """Rows of source, annotation, target after a header row."""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(["source", "annotation", "target"])
    count = 0
    for link in reader:
        writer.writerow([
            _escape_csv_formula(link.source),
            _escape_csv_formula(link.annotation),
            _escape_csv_formula(link.target),
        ])
        count += 1
    return count


# =============================================================================
# Plain Text (TXT)
# =============================================================================

def to_txt(reader: BeaconReader, out: TextIO) -> int:
    """
    Human-readable rendering: meta fields, a blank line, then links.
    Not guaranteed to reproduce the input byte for byte.
    """
    meta = reader.meta()
    for field in meta:
        out.write(f"{field}\n")
    if meta:
        out.write("\n")
    count = 0
    for link in reader:
        out.write(f"{link}\n")
        count += 1
    return count


# =============================================================================
# Dispatch
# =============================================================================

CONVERTERS = {
    "json": to_json,
    "jsonl": to_jsonl,
    "csv": to_csv,
    "txt": to_txt,
}


def convert(reader: BeaconReader, fmt: str, out: TextIO) -> int:
    """Stream a dump into the named format. Returns links written."""
    converter = CONVERTERS.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS.keys())}")
    return converter(reader, out)
