# comdisasm

A disassembler for DOS `.COM` programs. It decodes raw 16-bit x86 code that
is loaded at offset `0x100` and writes NASM-syntax assembly with:

- labels for short jump targets (`_start` for a short jump at `0x100`,
  `LABEL_0x....` otherwise), with short jumps rewritten as `jmp <label> ; label`
- function labels for near call targets (`FUNC_0x...`), with calls rewritten
  as `call <label> ; function`
- the `int 21h` DOS service named in a comment, found by tracking the value
  moved into `AH`
- the string passed to the "display string" service (`AH=09h`, address in
  `DX`) shown as a `db` statement comment where it starts
- optional address offsets and raw instruction bytes

Bytes that do not decode as an instruction are shown as `(bad)`. An
`int 21h` whose tracked `AH` value is not a known DOS service is left out of
the listing.

## Installing

```
pip install .
```

## Command line

```
comdisasm --input hello.com
comdisasm --input hello.com --output hello.asm --offsets --bytes
```

Options:

| Option | Default | Meaning |
| --- | --- | --- |
| `-i`, `--input PATH` | required | the `.COM` file to read |
| `-o`, `--output PATH` | standard output | where to write the assembly |
| `--labels` / `--no-labels` | on | write labels |
| `--indent` / `--no-indent` | on | indent instructions after a label |
| `--offsets` / `--no-offsets` | off | add each instruction's address as a comment |
| `--syscalls` / `--no-syscalls` | on | name `int 21h` services in a comment |
| `--bytes` / `--no-bytes` | off | add the bytes of each instruction |
| `--comments` / `--no-comments` | on | write other comments |

The command adds a `; Disassembled by DosDisassm` comment before the first
instruction. If the input file does not have a `.com` extension, it prints a
warning to standard error and disassembles the file anyway: a `.COM` file is
just raw machine code, so any file can be read as one. If the input cannot be
read or the output cannot be written, it prints an error and exits with
status 1.

## Library

```python
import sys

from comdisasm.disassemble import Disassembler, DisassemblerOptions, disassemble

code = bytes([0xEB, 0x04, 0x90, 0x90, 0x90, 0x90, 0xB4, 0x09, 0xCD, 0x21, 0xC3])

# Default options, returned as text
print(disassemble(code))

# Choose what goes into the output
disassembler = Disassembler(code)
options = DisassemblerOptions(offset_comments=True, syscall_comments=True)
disassembler.disassemble_stream(sys.stdout, options)
```

`DisassemblerOptions` defaults to labels, indenting and misc comments on,
and offsets, syscall comments and bytes off; `str(disassembler)` and
`disassemble()` use these defaults.

After construction a `Disassembler` exposes what it found: `instructions`,
`labels`, `syscall_list`, `comment_list`, `string_constant_list` and
`register_tracker`. Comments added to `comment_list` (see
`comdisasm.comment.Comment` and `CommentType.PRE`, `POST`, `INLINE`) are
written at their address.

The instruction decoder can be used on its own:

```python
from comdisasm.x86 import decode, format_instruction

for instruction in decode(b"\xB4\x09\xCD\x21", 0x100):
    print(hex(instruction.ip), format_instruction(instruction))
```

## What it does not do

It reads only flat `.COM` images; it does not parse `MZ` `.EXE` headers or
relocations. It decodes 8086/80186 instructions only, with no FPU or
32-bit forms. It follows no control flow: bytes are decoded in a straight
line from the start, so data placed among the code is shown as instructions.
It does not assemble.

## Running the tests

```
pip install .[test]
pytest
```