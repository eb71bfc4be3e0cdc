"""Command line interface for disassembling DOS .COM binaries."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from .comment import Comment, CommentType
from .consts import COM_OFFSET
from .disassemble import Disassembler, DisassemblerOptions

_EXTENSION_WARNING = (
    "Warn: Input file should have a .COM extension. this program will treat "
    "**ANY** file as a .COM file due to the nature of the DOS .COM file format "
    "not existing and being raw bytecode"
)
_BANNER = "Disassembled by DosDisassm"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dosdisassm",
        description="Simple CLI for disassembling DOS .COM binaries",
    )
    parser.add_argument(
        "-i", "--input", type=Path, required=True, help="Path to the .COM binary file"
    )
    parser.add_argument("-o", "--output", type=Path, help="Optional output file")
    flag = argparse.BooleanOptionalAction
    parser.add_argument("--labels", action=flag, default=True, help="Include labels")
    parser.add_argument(
        "--indent",
        action=flag,
        default=True,
        help="Include instruction indenting after labels",
    )
    parser.add_argument(
        "--offsets",
        action=flag,
        default=False,
        help="Include instruction address offsets",
    )
    parser.add_argument(
        "--syscalls", action=flag, default=True, help="Annotate syscalls (int 21h)"
    )
    parser.add_argument(
        "--bytes", action=flag, default=False, help="Include raw bytes in the output"
    )
    parser.add_argument(
        "--comments",
        action=flag,
        default=True,
        help="Include misc comments in the output",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the disassembler command line; return the process exit status."""
    args = _parser().parse_args(argv)

    if args.input.suffix != ".com":
        print(_EXTENSION_WARNING, file=sys.stderr)

    try:
        data = args.input.read_bytes()
    except OSError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    disassembler = Disassembler(data)
    disassembler.comment_list.append(Comment(CommentType.PRE, _BANNER, COM_OFFSET))

    options = DisassemblerOptions(
        write_labels=args.labels,
        write_indent=args.indent,
        offset_comments=args.offsets,
        syscall_comments=args.syscalls,
        write_bytes=args.bytes,
        misc_comments=args.comments,
    )

    try:
        if args.output is None:
            disassembler.disassemble_stream(sys.stdout, options)
        else:
            with args.output.open("w", encoding="utf-8") as stream:
                disassembler.disassemble_stream(stream, options)
    except OSError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())