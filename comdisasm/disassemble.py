"""Disassembly of DOS .COM programs into labelled NASM source."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TextIO

from .comment import Comment, CommentList, CommentType
from .consts import COM_OFFSET, Address
from .label import Label, LabelList, LabelType
from .strings import StringConstant, StringConstantList
from .syscall import Syscall, SyscallList, SyscallType
from .x86 import Instruction, OperandKind, Register, decode, format_instruction

_DOS_INTERRUPT = 0x21
_INDENT = "    "


class InstructionList(list):
    """A list of decoded instructions."""

    def __str__(self) -> str:
        return "".join(f"{instruction}\n" for instruction in self)


@dataclass
class DisassemblerOptions:
    """What the disassembler writes besides the instructions themselves."""

    write_labels: bool = True
    write_indent: bool = True
    offset_comments: bool = False
    syscall_comments: bool = False
    write_bytes: bool = False
    misc_comments: bool = True


class Disassembler:
    """Decodes a .COM program and collects labels, syscalls, comments and strings."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.labels = LabelList()
        self.instructions = InstructionList()
        self.syscall_list = SyscallList()
        self.register_tracker: dict[Register, int] = {}
        self.comment_list = CommentList()
        self.string_constant_list = StringConstantList()
        self._disassemble()
        self._search_labels()

    def _find_string_constant(self, address: Address) -> None:
        index = (address - COM_OFFSET) & 0xFFFF
        chars: list[str] = []
        for byte in self.data[index:]:
            if byte == 0x24:
                chars.append("$")
                break
            if byte == 0x00:
                break
            chars.append(chr(byte))
        value = "".join(chars)
        if value:
            size = len(value.encode("utf-8"))
            self.string_constant_list.append(
                StringConstant(value=value, start=address, end=address + size)
            )

    def _create_syscall_comments(self, syscall: Syscall) -> None:
        if syscall.number is not SyscallType.DisplayString:
            return
        address = self.register_tracker.get(Register.DX)
        if address is None:
            return
        self._find_string_constant(address)
        self.comment_list.append(
            Comment(CommentType.PRE, "Start of string data", address)
        )

    def _track_mov(self, instruction: Instruction) -> None:
        target = instruction.op_register(0)
        kind = instruction.op_kind(1)
        if kind in (OperandKind.IMMEDIATE8, OperandKind.IMMEDIATE16):
            self.register_tracker[target] = instruction.immediate(1)
        elif kind is OperandKind.REGISTER:
            source = instruction.op_register(1)
            self.register_tracker[target] = self.register_tracker.get(source, 0)

    def _disassemble(self) -> None:
        for instruction in decode(self.data, COM_OFFSET):
            if instruction.mnemonic == "mov":
                self._track_mov(instruction)

            if (
                instruction.mnemonic == "int"
                and instruction.op_kind(0) is OperandKind.IMMEDIATE8
                and instruction.immediate(0) == _DOS_INTERRUPT
            ):
                service = SyscallType.from_number(
                    self.register_tracker.get(Register.AH, 0)
                )
                if service is None:
                    # Unknown services are left out of the listing altogether.
                    continue
                syscall = Syscall(number=service, address=instruction.ip)
                self._create_syscall_comments(syscall)
                self.syscall_list.append(syscall)

            self.instructions.append(instruction)

    def _search_labels(self) -> None:
        for instruction in self.instructions:
            target = instruction.near_branch_target
            if instruction.is_jmp_short():
                if instruction.ip == COM_OFFSET:
                    self.labels.append(Label(target, LabelType.LABEL, "_start"))
                    self.comment_list.append(
                        Comment(CommentType.PRE, "Start of program", target)
                    )
                else:
                    self.labels.append(
                        Label(target, LabelType.LABEL, f"LABEL_0x{target:04x}")
                    )
            elif instruction.is_call_near():
                self.labels.append(
                    Label(target, LabelType.FUNCTION, f"FUNC_0x{target:x}")
                )

    def _instruction_text(
        self, instruction: Instruction, options: DisassemblerOptions
    ) -> str:
        if instruction.is_jmp_short() or instruction.is_call_near():
            label = self.labels.get_by_address(instruction.near_branch_target)
            if label is None:
                return str(instruction)
            if instruction.is_jmp_short():
                return f"jmp {label.name} ; label"
            return f"call {label.name} ; function"

        if instruction.mnemonic == "int" and options.syscall_comments:
            if instruction.op_kind(0) is not OperandKind.IMMEDIATE8:
                return format_instruction(instruction)
            if instruction.immediate(0) != _DOS_INTERRUPT:
                return ""
            text = format_instruction(instruction)
            syscall = self.syscall_list.get_by_address(instruction.ip)
            return f"{text} ; {syscall.number}" if syscall else text

        return format_instruction(instruction)

    def disassemble_stream(
        self, stream: TextIO, options: DisassemblerOptions | None = None
    ) -> None:
        """Write the disassembly to a text stream."""
        options = options or DisassemblerOptions()
        indent = False

        for instruction in self.instructions:
            address = instruction.ip
            string_constant = self.string_constant_list.get_string_constant(address)
            label = self.labels.get_by_address(address)
            comments = self.comment_list.get_comments(address)

            if options.misc_comments:
                for comment in comments:
                    if comment.comment_type is CommentType.PRE:
                        if indent:
                            stream.write(_INDENT)
                        stream.write(f"{comment}\n")

            if label is not None and options.write_labels:
                stream.write(f"{label}\n")
                indent = True

            if indent and options.write_indent:
                stream.write(_INDENT)
            if instruction.mnemonic == "ret":
                indent = False

            if string_constant is not None and address == string_constant.start:
                stream.write(f"; {string_constant.as_db_statement()}\n")

            stream.write(self._instruction_text(instruction, options))

            if options.offset_comments:
                stream.write(f" ; 0x{address:04x}")

            if options.write_bytes:
                stream.write(" ; bytes: " + instruction.raw.hex())

            if options.misc_comments:
                for comment in comments:
                    if comment.comment_type is CommentType.INLINE:
                        stream.write(str(comment))

            stream.write("\n")

            if options.misc_comments:
                for comment in comments:
                    if comment.comment_type is CommentType.POST:
                        if indent:
                            stream.write(_INDENT)
                        stream.write(str(comment))

            if any(c.comment_type is CommentType.POST for c in comments):
                stream.write("\n")

    def __str__(self) -> str:
        buffer = io.StringIO()
        self.disassemble_stream(buffer, DisassemblerOptions())
        return buffer.getvalue()


def disassemble(data: bytes) -> str:
    """Disassemble ``data`` with the default options and return the text."""
    return str(Disassembler(data))