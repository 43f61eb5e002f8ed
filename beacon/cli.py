"""
BEACON CLI - Command-line interface for BEACON link dumps.

Commands:
  beacon inspect  - Show dialect, meta fields, and link count of a dump
  beacon read     - Print the links of a dump
  beacon validate - Decode a whole dump and report the first error
  beacon convert  - Convert a dump to JSON, JSONL, CSV, or TXT
  beacon view     - Browse a dump in the terminal (TUI)

Environment:
  BEACON_FORMAT         default dialect (rfc or urlteam)
  BEACON_SHORTCODE_LEN  default fixed shortcode width for urlteam dumps
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from beacon.errors import BeaconError
from beacon.reader import BeaconReader
from beacon.spec import Format

log = logging.getLogger("beacon.cli")


def _open_reader(args: argparse.Namespace) -> BeaconReader:
    """Open the dump named on the command line ('-' reads stdin)."""
    if args.path == "-":
        return BeaconReader(sys.stdin.buffer, args.format, args.shortcode_len)
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: File not found: {args.path}", file=sys.stderr)
        sys.exit(1)
    return BeaconReader.open(path, args.format, args.shortcode_len)


def _fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def cmd_inspect(args: argparse.Namespace) -> None:
    """Inspect a dump - show header and count links."""
    with _open_reader(args) as reader:
        try:
            meta = reader.meta()
            print(f"BEACON ({reader.format.value}"
                  + (f", shortcode length {reader.shortcode_len})" if reader.shortcode_len else ")"))
            print()

            print("META:")
            for field in meta:
                # Truncate long values
                display = field.value if len(field.value) <= 72 else field.value[:69] + "..."
                print(f"  {field.name}: {display}")
            if not meta:
                print("  (none)")
            print()

            count = sum(1 for _ in reader)
        except BeaconError as e:
            _fail(f"Error: {e}")
        print(f"LINKS: {count}")
        print(f"LINES: {reader.line}")


def cmd_read(args: argparse.Namespace) -> None:
    """Print links, one rendered link per line."""
    with _open_reader(args) as reader:
        try:
            for i, link in enumerate(reader):
                if args.limit is not None and i >= args.limit:
                    break
                print(link)
        except BeaconError as e:
            _fail(f"Error: {e}")


def cmd_validate(args: argparse.Namespace) -> None:
    """Decode the whole dump; exit 1 on the first malformed line."""
    try:
        with _open_reader(args) as reader:
            meta = reader.meta()
            count = sum(1 for _ in reader)
    except BeaconError as e:
        # Decoding errors carry the line number -- safe to show
        print(f"FAIL: {args.path}: {e}")
        sys.exit(1)
    except OSError:
        print(f"FAIL: unable to read {args.path}")
        sys.exit(1)
    print(f"OK: {args.path} is a valid BEACON dump ({reader.format.value})")
    print(f"    Meta fields: {len(meta)}")
    print(f"    Links: {count}")


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert a dump to another format."""
    from beacon.converters import convert

    if args.output and ".." in Path(args.output).parts:
        _fail("Error: Output path must not contain '..' (path traversal)")

    with _open_reader(args) as reader:
        try:
            if args.output:
                with open(args.output, "w", encoding="utf-8", newline="") as out:
                    count = convert(reader, args.to, out)
                print(f"Converted {args.path} -> {args.output} ({count} links)")
            else:
                convert(reader, args.to, sys.stdout)
        except BeaconError as e:
            _fail(f"Error: {e}")


def cmd_view(args: argparse.Namespace) -> None:
    """View a dump in the TUI viewer."""
    if args.path == "-":
        # The viewer reads keystrokes from the terminal on stdin
        _fail("Error: view needs a dump file; reading from stdin ('-') is not supported")
    try:
        from beacon.tui.viewer import run_viewer
    except ImportError:
        _fail(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"beacon-dump[tui]\""
        )
    run_viewer(args.path, args.format, args.shortcode_len, limit=args.limit)


def _default_format() -> str:
    value = os.environ.get("BEACON_FORMAT", Format.RFC.value).lower()
    return value if value in {f.value for f in Format} else Format.RFC.value


def _default_shortcode_len() -> int:
    try:
        return int(os.environ.get("BEACON_SHORTCODE_LEN", "0"))
    except ValueError:
        return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="beacon",
        description="BEACON - streaming decoder for BEACON link dumps.",
    )
    from beacon import __version__
    parser.add_argument("--version", action="version", version=f"beacon {__version__}")

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", help="Path to dump file (.gz/.bz2/.xz ok, '-' for stdin except with view)")
    common.add_argument(
        "-f", "--format", choices=[f.value for f in Format], default=_default_format(),
        help="Link line dialect (default: rfc, or $BEACON_FORMAT)",
    )
    common.add_argument(
        "-w", "--shortcode-len", type=int, default=_default_shortcode_len(),
        help="Fixed shortcode width for urlteam dumps, 0 = variable (or $BEACON_SHORTCODE_LEN)",
    )
    common.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    # inspect
    sub.add_parser("inspect", parents=[common], help="Show header and link count")

    # read
    p_read = sub.add_parser("read", parents=[common], help="Print links")
    p_read.add_argument("-n", "--limit", type=int, default=None, help="Print at most N links")

    # validate
    sub.add_parser("validate", parents=[common], help="Validate a dump")

    # convert
    p_convert = sub.add_parser("convert", parents=[common], help="Convert to JSON, JSONL, CSV, or TXT")
    p_convert.add_argument("to", choices=["json", "jsonl", "csv", "txt"], help="Output format")
    p_convert.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # view
    p_view = sub.add_parser("view", parents=[common], help="Browse a dump (TUI)")
    p_view.add_argument("-n", "--limit", type=int, default=None, help="Load at most N links")

    args = parser.parse_args(argv)

    if not args.command:
        print("BEACON - streaming decoder for BEACON link dumps\n")
        print("Usage:")
        print("  beacon inspect links.txt")
        print("  beacon read links.txt -n 20")
        print("  beacon validate urlteam-dump.txt.xz -f urlteam -w 6")
        print("  beacon convert links.txt jsonl -o links.jsonl")
        print("  beacon view links.txt")
        print()
        print("Pipe from stdin:")
        print("  xzcat dump.txt.xz | beacon read - -f urlteam")
        print()
        print("Run 'beacon <command> --help' for details on any command.")
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.shortcode_len < 0:
        parser.error("--shortcode-len must not be negative")
    if args.shortcode_len and args.format != Format.URLTEAM.value:
        log.debug("ignoring shortcode length %d for %s dump", args.shortcode_len, args.format)
        args.shortcode_len = 0

    commands = {
        "inspect": cmd_inspect,
        "read": cmd_read,
        "validate": cmd_validate,
        "convert": cmd_convert,
        "view": cmd_view,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
