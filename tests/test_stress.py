"""
BEACON Stress Tests
===================
Push the reader through large dumps, long multi-line records, wide
headers, and sources that cannot seek.

Run:
    python -m pytest tests/test_stress.py -v --tb=short
    python tests/test_stress.py          # standalone mode with benchmarks
"""

from __future__ import annotations

import gzip
import io
import os
import sys
import tempfile
import time
from pathlib import Path

# Allow running from repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from beacon.document import Link
from beacon.errors import BeaconError
from beacon.reader import BeaconReader
from beacon.spec import MAX_META_FIELDS, Format
from beacon import converters


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _timer():
    """Simple context-manager stopwatch."""
    class Timer:
        def __init__(self):
            self.elapsed = 0.0
        def __enter__(self):
            self._start = time.perf_counter()
            return self
        def __exit__(self, *_):
            self.elapsed = time.perf_counter() - self._start
    return Timer()


def _rfc_dump(n: int) -> bytes:
    lines = ["#FORMAT: BEACON", "#PREFIX: http://example.org/", ""]
    lines += [f"id{i}|rel{i % 7}|http://example.com/{i}" for i in range(n)]
    return ("\n".join(lines) + "\n").encode("utf-8")


def _urlteam_dump(n: int, width: int = 6) -> bytes:
    return "".join(
        f"{i:0{width}d}|http://target.example/{i}?q={'x' * (i % 50)}\n" for i in range(n)
    ).encode("utf-8")


def _write_temp(data: bytes, suffix: str = ".txt") -> Path:
    """Write data to a temp file, return its path."""
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
        path = Path(f.name)
    if suffix == ".gz":
        with gzip.open(path, "wb") as f:
            f.write(data)
    else:
        path.write_bytes(data)
    return path


def _report(label: str, elapsed: float, size: int = 0):
    mb = size / (1024 * 1024) if size else 0
    rate = f" ({mb / elapsed:.1f} MB/s)" if size and elapsed > 0 else ""
    print(f"  {label}: {elapsed*1000:.1f} ms{rate}")


class _PipeSource:
    """Readline-only source, like a socket file or a decompressor pipe."""

    def __init__(self, data: bytes):
        self._lines = io.BytesIO(data).readlines()
        self._pos = 0
        self.calls = 0

    def readline(self):
        self.calls += 1
        if self._pos >= len(self._lines):
            return b""
        line = self._lines[self._pos]
        self._pos += 1
        return line


# ===================================================================
# 1. LARGE DUMPS
# ===================================================================

class TestLargeDumps:
    """Many links, streamed from memory and from disk."""

    def test_100k_rfc_links(self):
        reader = BeaconReader.parse(_rfc_dump(100_000))
        assert len(reader.meta()) == 2
        count = 0
        last = None
        for last in reader:
            count += 1
        assert count == 100_000
        assert last == Link("id99999", "http://example.com/99999", "rel4")
        assert reader.line == 100_003

    def test_100k_urlteam_gzip_file(self):
        path = _write_temp(_urlteam_dump(100_000), ".gz")
        try:
            with BeaconReader.open(path, Format.URLTEAM, shortcode_len=6) as reader:
                count = sum(1 for _ in reader)
            assert count == 100_000
        finally:
            os.unlink(path)

    def test_variable_width_matches_fixed_width(self):
        data = _urlteam_dump(5_000)
        fixed = list(BeaconReader.parse(data, Format.URLTEAM, 6))
        variable = list(BeaconReader.parse(data, Format.URLTEAM, 0))
        assert fixed == variable

    def test_load_is_bounded(self):
        path = _write_temp(_rfc_dump(50_000))
        try:
            doc = BeaconReader.load(path, limit=100)
            assert len(doc.links) == 100
            assert doc.truncated
        finally:
            os.unlink(path)

    def test_error_deep_in_dump_reports_line(self):
        data = _rfc_dump(20_000) + b"a|b|c|d\n"
        reader = BeaconReader.parse(data)
        try:
            for _ in reader:
                pass
        except BeaconError as e:
            assert e.line == 20_004
        else:
            raise AssertionError("expected BeaconError")


# ===================================================================
# 2. LONG RECORDS
# ===================================================================

class TestLongRecords:

    def test_one_megabyte_line(self):
        target = "http://x/" + "y" * (1024 * 1024)
        reader = BeaconReader.parse(f"a|{target}\n")
        assert reader.read() == Link("a", target)
        assert reader.read() is None

    def test_thousand_continuation_lines(self):
        body = "".join(f"part {i}\n" for i in range(1_000))
        data = f"ab|start\n{body}cd|next\n"
        reader = BeaconReader.parse(data, Format.URLTEAM, 2)
        first = reader.read()
        assert first.source == "ab"
        assert first.target == "start\n" + body[:-1]
        assert reader.read() == Link("cd", "next")
        assert reader.read() is None
        assert reader.line == 1_002

    def test_alternating_multiline_records(self):
        data = "".join(f"{i:03d}|http://{i}/\nmore {i}\n" for i in range(1_000))
        links = list(BeaconReader.parse(data, Format.URLTEAM, 3))
        assert len(links) == 1_000
        assert links[-1] == Link("999", "http://999/\nmore 999")


# ===================================================================
# 3. WIDE HEADERS
# ===================================================================

class TestWideHeaders:

    def test_max_meta_fields(self):
        header = "".join(f"#FIELD: {i}\n" for i in range(MAX_META_FIELDS))
        reader = BeaconReader.parse(header + "\na|b\n")
        assert len(reader.meta()) == MAX_META_FIELDS
        assert list(reader) == [Link("a", "b")]

    def test_too_many_meta_fields(self):
        header = "".join(f"#FIELD: {i}\n" for i in range(MAX_META_FIELDS + 1))
        reader = BeaconReader.parse(header + "\n")
        try:
            reader.meta()
        except BeaconError as e:
            assert "too many meta fields" in str(e)
            assert e.line == MAX_META_FIELDS + 1
        else:
            raise AssertionError("expected BeaconError")

    def test_custom_meta_limit(self):
        reader = BeaconReader.parse("#A: 1\n#B: 2\n\n", max_meta_fields=5)
        assert len(reader.meta()) == 2


# ===================================================================
# 4. NON-SEEKABLE SOURCES
# ===================================================================

class TestNonSeekable:

    def test_pipe_source(self):
        source = _PipeSource(_rfc_dump(1_000))
        reader = BeaconReader(source)
        assert sum(1 for _ in reader) == 1_000
        assert source.calls == 1_004

    def test_pipe_source_urlteam_multiline(self):
        source = _PipeSource(b"ab|x\ny\ncd|z\n")
        reader = BeaconReader(source, Format.URLTEAM, 2)
        assert list(reader) == [Link("ab", "x\ny"), Link("cd", "z")]

    def test_end_of_stream_is_sticky(self):
        source = _PipeSource(b"a|b\n")
        reader = BeaconReader(source)
        assert reader.read() == Link("a", "b")
        for _ in range(3):
            assert reader.read() is None


# ===================================================================
# 5. CONVERSION AT SCALE
# ===================================================================

class TestConversionAtScale:

    def test_jsonl_10k(self):
        out = io.StringIO()
        count = converters.to_jsonl(BeaconReader.parse(_rfc_dump(10_000)), out)
        assert count == 10_000
        assert out.getvalue().count("\n") == 10_000

    def test_txt_rerenders_rfc_dump(self):
        data = _rfc_dump(10_000)
        out = io.StringIO()
        converters.to_txt(BeaconReader.parse(data), out)
        assert out.getvalue().encode("utf-8") == data


# ===================================================================
# BENCHMARKS (standalone mode only)
# ===================================================================

def run_benchmarks():
    print(f"\n{'='*60}")
    print("  BENCHMARKS")
    print(f"{'='*60}")

    data = _rfc_dump(500_000)
    with _timer() as t:
        count = sum(1 for _ in BeaconReader.parse(data))
    _report(f"rfc, {count} links", t.elapsed, len(data))

    data = _urlteam_dump(500_000)
    with _timer() as t:
        count = sum(1 for _ in BeaconReader.parse(data, Format.URLTEAM, 6))
    _report(f"urlteam fixed width, {count} links", t.elapsed, len(data))

    with _timer() as t:
        count = sum(1 for _ in BeaconReader.parse(data, Format.URLTEAM, 0))
    _report(f"urlteam variable width, {count} links", t.elapsed, len(data))

    path = _write_temp(data, ".gz")
    try:
        with _timer() as t:
            with BeaconReader.open(path, Format.URLTEAM, 6) as reader:
                count = sum(1 for _ in reader)
        _report(f"urlteam gzip file, {count} links", t.elapsed, len(data))
    finally:
        os.unlink(path)


if __name__ == "__main__":
    import traceback

    test_classes = [
        TestLargeDumps,
        TestLongRecords,
        TestWideHeaders,
        TestNonSeekable,
        TestConversionAtScale,
    ]

    passed = 0
    failed = 0

    for cls in test_classes:
        print(f"\n{'='*60}")
        print(f"  {cls.__name__}")
        print(f"{'='*60}")

        instance = cls()
        for name in sorted(dir(instance)):
            if not name.startswith("test_"):
                continue
            try:
                getattr(instance, name)()
                print(f"  ok   {name}")
                passed += 1
            except AssertionError as e:
                print(f"  FAIL {name}: {e}")
                traceback.print_exc()
                failed += 1
            except Exception as e:
                print(f"  ERROR {name}: {e}")
                traceback.print_exc()
                failed += 1

    run_benchmarks()

    print(f"\n{'='*60}")
    total = passed + failed
    print(f"  RESULTS: {passed}/{total} passed, {failed} failed")
    print(f"{'='*60}")

    sys.exit(1 if failed else 0)
