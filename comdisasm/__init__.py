"""Disassembler for DOS .COM files producing labelled NASM-syntax assembly."""

__version__ = "0.1.2"

__all__ = [
    "cli",
    "comment",
    "consts",
    "disassemble",
    "label",
    "strings",
    "syscall",
    "x86",
]