"""A decoder and NASM-style formatter for 16-bit real-mode x86 code."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .consts import COM_OFFSET, Address


class Register(Enum):
    """General purpose and segment registers of the 8086."""

    NONE = ""
    AL = "al"
    CL = "cl"
    DL = "dl"
    BL = "bl"
    AH = "ah"
    CH = "ch"
    DH = "dh"
    BH = "bh"
    AX = "ax"
    CX = "cx"
    DX = "dx"
    BX = "bx"
    SP = "sp"
    BP = "bp"
    SI = "si"
    DI = "di"
    ES = "es"
    CS = "cs"
    SS = "ss"
    DS = "ds"


class OperandKind(Enum):
    """The kind of an instruction operand."""

    REGISTER = "register"
    IMMEDIATE8 = "immediate8"
    IMMEDIATE16 = "immediate16"
    IMMEDIATE8TO16 = "immediate8to16"
    MEMORY = "memory"
    NEAR_BRANCH = "near_branch"
    FAR_BRANCH = "far_branch"


_REG8 = (Register.AL, Register.CL, Register.DL, Register.BL,
         Register.AH, Register.CH, Register.DH, Register.BH)
_REG16 = (Register.AX, Register.CX, Register.DX, Register.BX,
          Register.SP, Register.BP, Register.SI, Register.DI)
_SREG = (Register.ES, Register.CS, Register.SS, Register.DS)
_BASES = (
    (Register.BX, Register.SI), (Register.BX, Register.DI),
    (Register.BP, Register.SI), (Register.BP, Register.DI),
    (Register.SI,), (Register.DI,), (Register.BP,), (Register.BX,),
)
_ALU = ("add", "or", "adc", "sbb", "and", "sub", "xor", "cmp")
_SHIFT = ("rol", "ror", "rcl", "rcr", "shl", "shr", "sal", "sar")
_GROUP3 = ("test", "test", "not", "neg", "mul", "imul", "div", "idiv")
_JCC = ("jo", "jno", "jb", "jae", "je", "jne", "jbe", "ja",
        "js", "jns", "jp", "jnp", "jl", "jge", "jle", "jg")
_SEGMENT_PREFIXES = {0x26: Register.ES, 0x2E: Register.CS,
                     0x36: Register.SS, 0x3E: Register.DS}
_SIMPLE = {
    0x27: "daa", 0x2F: "das", 0x37: "aaa", 0x3F: "aas",
    0x60: "pusha", 0x61: "popa",
    0x90: "nop", 0x98: "cbw", 0x99: "cwd", 0x9B: "wait",
    0x9C: "pushf", 0x9D: "popf", 0x9E: "sahf", 0x9F: "lahf",
    0xA4: "movsb", 0xA5: "movsw", 0xA6: "cmpsb", 0xA7: "cmpsw",
    0xAA: "stosb", 0xAB: "stosw", 0xAC: "lodsb", 0xAD: "lodsw",
    0xAE: "scasb", 0xAF: "scasw",
    0xC3: "ret", 0xCB: "retf", 0xCC: "int3", 0xCE: "into", 0xCF: "iret",
    0xD7: "xlatb", 0xF4: "hlt", 0xF5: "cmc",
    0xF8: "clc", 0xF9: "stc", 0xFA: "cli", 0xFB: "sti", 0xFC: "cld", 0xFD: "std",
}


@dataclass(frozen=True)
class Operand:
    """One operand: a register, an immediate, a memory reference or a branch target."""

    kind: OperandKind
    register: Register = Register.NONE
    value: int = 0
    base: tuple[Register, ...] = ()
    size: int | None = None
    segment: Register = Register.NONE


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction with its address and raw bytes."""

    ip: Address
    raw: bytes
    mnemonic: str
    operands: tuple[Operand, ...] = ()
    prefix: str | None = None
    branch_size: str | None = None

    @property
    def length(self) -> int:
        return len(self.raw)

    @property
    def next_ip(self) -> Address:
        return (self.ip + self.length) & 0xFFFF

    @property
    def is_invalid(self) -> bool:
        return self.mnemonic == "(bad)"

    @property
    def near_branch_target(self) -> Address:
        """Target of a relative branch, or 0 when the instruction has none."""
        return next(
            (op.value for op in self.operands if op.kind is OperandKind.NEAR_BRANCH), 0
        )

    def op_kind(self, index: int) -> OperandKind | None:
        return self.operands[index].kind if index < len(self.operands) else None

    def op_register(self, index: int) -> Register:
        if index < len(self.operands):
            return self.operands[index].register
        return Register.NONE

    def immediate(self, index: int) -> int:
        return self.operands[index].value

    def is_jmp_short(self) -> bool:
        """True for ``jmp rel8``."""
        return self.mnemonic == "jmp" and self.branch_size == "short"

    def is_call_near(self) -> bool:
        """True for ``call rel16``."""
        return self.mnemonic == "call" and self.op_kind(0) is OperandKind.NEAR_BRANCH

    def __str__(self) -> str:
        return format_instruction(self)


class _Truncated(Exception):
    pass


class _Invalid(Exception):
    pass


class _Reader:
    def __init__(self, data: bytes, pos: int) -> None:
        self.data = data
        self.pos = pos

    def u8(self) -> int:
        if self.pos >= len(self.data):
            raise _Truncated
        value = self.data[self.pos]
        self.pos += 1
        return value

    def s8(self) -> int:
        value = self.u8()
        return value - 0x100 if value & 0x80 else value

    def u16(self) -> int:
        low = self.u8()
        return low | (self.u8() << 8)


def _reg(size: int, index: int) -> Operand:
    table = _REG8 if size == 8 else _REG16
    return Operand(OperandKind.REGISTER, register=table[index])


def _imm(size: int, value: int) -> Operand:
    kind = OperandKind.IMMEDIATE8 if size == 8 else OperandKind.IMMEDIATE16
    return Operand(kind, value=value)


def _modrm(r: _Reader, size: int | None, seg: Register) -> tuple[int, int, Operand]:
    byte = r.u8()
    mod, reg, rm = byte >> 6, (byte >> 3) & 7, byte & 7
    if mod == 3:
        return mod, reg, _reg(size or 16, rm)
    if mod == 0 and rm == 6:
        return mod, reg, Operand(OperandKind.MEMORY, value=r.u16(), size=size, segment=seg)
    disp = 0
    if mod == 1:
        disp = r.s8()
    elif mod == 2:
        disp = r.u16()
        if disp & 0x8000:
            disp -= 0x10000
    return mod, reg, Operand(
        OperandKind.MEMORY, value=disp, base=_BASES[rm], size=size, segment=seg
    )


def _decode_one(r: _Reader, ip: int) -> tuple[str, tuple[Operand, ...], str | None, str | None]:
    seg = Register.NONE
    prefix = None
    while True:
        op = r.u8()
        if op in _SEGMENT_PREFIXES:
            seg = _SEGMENT_PREFIXES[op]
        elif op == 0xF0:
            prefix = "lock"
        elif op == 0xF2:
            prefix = "repne"
        elif op == 0xF3:
            prefix = "rep"
        else:
            break

    def rel(disp: int) -> Operand:
        return Operand(OperandKind.NEAR_BRANCH, value=(ip + (r.pos - start) + disp) & 0xFFFF)

    start = r.pos - 1 - _prefix_count(r, ip)
    ops: tuple[Operand, ...]

    if op < 0x40 and op & 7 < 6:
        name, form = _ALU[op >> 3], op & 7
        size = 8 if form in (0, 2, 4) else 16
        if form < 4:
            _, reg, rm = _modrm(r, size, seg)
            ops = (rm, _reg(size, reg)) if form < 2 else (_reg(size, reg), rm)
            return name, ops, prefix, None
        accumulator = Operand(OperandKind.REGISTER, register=Register.AL if size == 8 else Register.AX)
        value = r.u8() if size == 8 else r.u16()
        return name, (accumulator, _imm(size, value)), prefix, None
    if op < 0x20 and op & 7 in (6, 7):
        sreg = Operand(OperandKind.REGISTER, register=_SREG[op >> 3])
        if op == 0x0F:
            raise _Invalid
        return ("push" if op & 1 == 0 else "pop"), (sreg,), prefix, None
    if op in _SIMPLE:
        return _SIMPLE[op], (), prefix, None
    if 0x40 <= op <= 0x5F:
        name = ("inc", "dec", "push", "pop")[(op - 0x40) >> 3]
        return name, (_reg(16, op & 7),), prefix, None
    if op == 0x68:
        return "push", (_imm(16, r.u16()),), prefix, None
    if op == 0x6A:
        return "push", (Operand(OperandKind.IMMEDIATE8TO16, value=r.s8() & 0xFFFF),), prefix, None
    if 0x70 <= op <= 0x7F:
        disp = r.s8()
        return _JCC[op & 0xF], (rel(disp),), prefix, "short"
    if 0x80 <= op <= 0x83:
        size = 8 if op in (0x80, 0x82) else 16
        _, reg, rm = _modrm(r, size, seg)
        if op == 0x83:
            imm = Operand(OperandKind.IMMEDIATE8TO16, value=r.s8() & 0xFFFF)
        else:
            imm = _imm(size, r.u8() if size == 8 else r.u16())
        return _ALU[reg], (rm, imm), prefix, None
    if 0x84 <= op <= 0x8B:
        name = ("test", "xchg", "mov", "mov")[(op - 0x84) >> 1]
        size = 8 if op % 2 == 0 else 16
        _, reg, rm = _modrm(r, size, seg)
        ops = (_reg(size, reg), rm) if op in (0x8A, 0x8B) else (rm, _reg(size, reg))
        return name, ops, prefix, None
    if op in (0x8C, 0x8E):
        _, reg, rm = _modrm(r, 16, seg)
        if reg > 3:
            raise _Invalid
        sreg = Operand(OperandKind.REGISTER, register=_SREG[reg])
        return "mov", ((rm, sreg) if op == 0x8C else (sreg, rm)), prefix, None
    if op in (0x8D, 0xC4, 0xC5):
        mod, reg, rm = _modrm(r, None, seg)
        if mod == 3:
            raise _Invalid
        name = {0x8D: "lea", 0xC4: "les", 0xC5: "lds"}[op]
        return name, (_reg(16, reg), rm), prefix, None
    if op == 0x8F:
        _, reg, rm = _modrm(r, 16, seg)
        if reg:
            raise _Invalid
        return "pop", (rm,), prefix, None
    if 0x91 <= op <= 0x97:
        return "xchg", (_reg(16, 0), _reg(16, op & 7)), prefix, None
    if op in (0x9A, 0xEA):
        offset = r.u16()
        segment = r.u16()
        far = Operand(OperandKind.FAR_BRANCH, value=offset, base=(), size=segment)
        return ("call" if op == 0x9A else "jmp"), (far,), prefix, "far"
    if 0xA0 <= op <= 0xA3:
        size = 8 if op % 2 == 0 else 16
        mem = Operand(OperandKind.MEMORY, value=r.u16(), size=size, segment=seg)
        ops = (_reg(size, 0), mem) if op < 0xA2 else (mem, _reg(size, 0))
        return "mov", ops, prefix, None
    if op in (0xA8, 0xA9):
        size = 8 if op == 0xA8 else 16
        return "test", (_reg(size, 0), _imm(size, r.u8() if size == 8 else r.u16())), prefix, None
    if 0xB0 <= op <= 0xB7:
        return "mov", (_reg(8, op & 7), _imm(8, r.u8())), prefix, None
    if 0xB8 <= op <= 0xBF:
        return "mov", (_reg(16, op & 7), _imm(16, r.u16())), prefix, None
    if op in (0xC2, 0xCA):
        return ("ret" if op == 0xC2 else "retf"), (_imm(16, r.u16()),), prefix, None
    if op in (0xC6, 0xC7):
        size = 8 if op == 0xC6 else 16
        _, reg, rm = _modrm(r, size, seg)
        if reg:
            raise _Invalid
        return "mov", (rm, _imm(size, r.u8() if size == 8 else r.u16())), prefix, None
    if op == 0xCD:
        return "int", (_imm(8, r.u8()),), prefix, None
    if 0xD0 <= op <= 0xD3:
        size = 8 if op % 2 == 0 else 16
        _, reg, rm = _modrm(r, size, seg)
        count = _imm(8, 1) if op < 0xD2 else Operand(OperandKind.REGISTER, register=Register.CL)
        return _SHIFT[reg], (rm, count), prefix, None
    if op in (0xD4, 0xD5):
        name = "aam" if op == 0xD4 else "aad"
        base = r.u8()
        return name, (() if base == 0x0A else (_imm(8, base),)), prefix, None
    if 0xE0 <= op <= 0xE3:
        disp = r.s8()
        return ("loopne", "loope", "loop", "jcxz")[op - 0xE0], (rel(disp),), prefix, None
    if 0xE4 <= op <= 0xE7:
        size = 8 if op % 2 == 0 else 16
        port = _imm(8, r.u8())
        ops = (_reg(size, 0), port) if op < 0xE6 else (port, _reg(size, 0))
        return ("in" if op < 0xE6 else "out"), ops, prefix, None
    if op in (0xE8, 0xE9):
        disp = r.u16()
        disp = disp - 0x10000 if disp & 0x8000 else disp
        return ("call" if op == 0xE8 else "jmp"), (rel(disp),), prefix, (None if op == 0xE8 else "near")
    if op == 0xEB:
        disp = r.s8()
        return "jmp", (rel(disp),), prefix, "short"
    if 0xEC <= op <= 0xEF:
        size = 8 if op % 2 == 0 else 16
        port = Operand(OperandKind.REGISTER, register=Register.DX)
        ops = (_reg(size, 0), port) if op < 0xEE else (port, _reg(size, 0))
        return ("in" if op < 0xEE else "out"), ops, prefix, None
    if op in (0xF6, 0xF7):
        size = 8 if op == 0xF6 else 16
        _, reg, rm = _modrm(r, size, seg)
        if reg < 2:
            return "test", (rm, _imm(size, r.u8() if size == 8 else r.u16())), prefix, None
        return _GROUP3[reg], (rm,), prefix, None
    if op == 0xFE:
        _, reg, rm = _modrm(r, 8, seg)
        if reg > 1:
            raise _Invalid
        return ("inc", "dec")[reg], (rm,), prefix, None
    if op == 0xFF:
        mod, reg, rm = _modrm(r, 16, seg)
        if reg == 7 or (reg in (3, 5) and mod == 3):
            raise _Invalid
        name = ("inc", "dec", "call", "call", "jmp", "jmp", "push")[reg]
        if reg in (3, 5):
            return name, (Operand(OperandKind.MEMORY, value=rm.value, base=rm.base, segment=seg),), prefix, "far"
        return name, (rm,), prefix, None
    raise _Invalid


def _prefix_count(r: _Reader, ip: int) -> int:
    # Number of prefix bytes directly before the opcode just read.
    count = 0
    pos = r.pos - 2
    while pos >= 0 and r.data[pos] in (0x26, 0x2E, 0x36, 0x3E, 0xF0, 0xF2, 0xF3) and pos >= r.origin:
        count += 1
        pos -= 1
    return count


def decode(data: bytes, ip: Address = COM_OFFSET) -> Iterator[Instruction]:
    """Decode ``data`` loaded at ``ip`` into instructions, one after another."""
    data = bytes(data)
    pos = 0
    while pos < len(data):
        address = (ip + pos) & 0xFFFF
        reader = _Reader(data, pos)
        reader.origin = pos
        try:
            mnemonic, operands, prefix, branch = _decode_one(reader, address)
            end = reader.pos
        except (_Truncated, _Invalid):
            mnemonic, operands, prefix, branch = "(bad)", (), None, None
            end = pos + 1
        yield Instruction(address, data[pos:end], mnemonic, operands, prefix, branch)
        pos = end


def _number(value: int) -> str:
    return str(value) if 0 <= value <= 9 else f"0x{value:X}"


def _format_memory(op: Operand, with_size: bool) -> str:
    if op.base:
        inner = "+".join(reg.value for reg in op.base)
        if op.value > 0:
            inner += "+" + _number(op.value)
        elif op.value < 0:
            inner += "-" + _number(-op.value)
    else:
        inner = _number(op.value & 0xFFFF)
    if op.segment is not Register.NONE:
        inner = f"{op.segment.value}:{inner}"
    text = f"[{inner}]"
    if with_size and op.size:
        text = ("byte " if op.size == 8 else "word ") + text
    return text


def _format_operand(op: Operand, with_size: bool) -> str:
    if op.kind is OperandKind.REGISTER:
        return op.register.value
    if op.kind is OperandKind.MEMORY:
        return _format_memory(op, with_size)
    if op.kind is OperandKind.FAR_BRANCH:
        return f"{_number(op.size or 0)}:{_number(op.value)}"
    return _number(op.value)


def format_instruction(instruction: Instruction) -> str:
    """Render an instruction in NASM syntax with ``0x`` hexadecimal numbers."""
    if instruction.is_invalid:
        return "(bad)"
    ops = instruction.operands
    with_size = not any(op.kind is OperandKind.REGISTER for op in ops)
    text = instruction.mnemonic
    if instruction.prefix:
        text = f"{instruction.prefix} {text}"
    if instruction.branch_size and ops and ops[0].kind is not OperandKind.FAR_BRANCH:
        text += " " + instruction.branch_size
    if ops:
        text += " " + ",".join(_format_operand(op, with_size) for op in ops)
    return text