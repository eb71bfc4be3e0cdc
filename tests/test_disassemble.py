import io

from comdisasm.comment import Comment, CommentType
from comdisasm.disassemble import (
    Disassembler,
    DisassemblerOptions,
    InstructionList,
    disassemble,
)
from comdisasm.label import LabelType
from comdisasm.syscall import SyscallType
from comdisasm.x86 import Register

SAMPLE = bytes(
    [
        0xEB, 0x04,
        0x90, 0x90, 0x90, 0x90,
        0xB4, 0x09,
        0xCD, 0x21,
        0xC3,
    ]
)

STRING_PROGRAM = bytes(
    [
        0xBA, 0x08, 0x01,  # mov dx, 0x108
        0xB4, 0x09,        # mov ah, 9
        0xCD, 0x21,        # int 21h
        0xC3,              # ret
        0x48, 0x69, 0x24,  # "Hi$"
    ]
)

ALL_OPTIONS = DisassemblerOptions(
    write_labels=True,
    write_indent=True,
    offset_comments=True,
    syscall_comments=True,
    write_bytes=True,
    misc_comments=True,
)


def render(disassembler, options=None):
    buffer = io.StringIO()
    disassembler.disassemble_stream(buffer, options or DisassemblerOptions())
    return buffer.getvalue()


def test_instruction_list_is_empty_on_new():
    instructions = InstructionList()
    assert len(instructions) == 0
    assert str(instructions) == ""


def test_default_options():
    options = DisassemblerOptions()
    assert (
        options.write_labels,
        options.write_indent,
        options.offset_comments,
        options.syscall_comments,
        options.write_bytes,
        options.misc_comments,
    ) == (True, True, False, False, False, True)


def test_disassembler_tracks_ah_and_syscall():
    d = Disassembler(SAMPLE)
    assert d.register_tracker.get(Register.AH) == 0x09
    assert len(d.syscall_list) == 1
    assert d.syscall_list[0].address == 0x108
    assert d.syscall_list[0].number is SyscallType.DisplayString


def test_jump_creates_start_label():
    d = Disassembler(SAMPLE)
    label = d.labels.get_by_address(0x0106)
    assert label is not None
    assert label.name == "_start"
    assert label.label_type is LabelType.LABEL
    texts = [c.comment_text for c in d.comment_list.get_comments(0x106)]
    assert texts == ["Start of program"]


def test_disassemble_stream_emits_expected_text():
    out = render(Disassembler(SAMPLE), ALL_OPTIONS)
    assert "_start" in out
    assert "jmp _start ; label" in out
    assert "int 0x21" in out
    assert "; 0x0100" in out
    assert "; bytes:" in out
    assert any("int 0x21" in line and " ; " in line for line in out.splitlines())


def test_stream_with_all_options_pins_lines():
    lines = render(Disassembler(SAMPLE), ALL_OPTIONS).splitlines()
    assert lines[0] == "jmp _start ; label ; 0x0100 ; bytes: eb04"
    assert "    int 0x21 ; DisplayString 0x09 ; 0x0108 ; bytes: cd21" in lines


def test_default_str_output():
    expected = (
        "jmp _start ; label\n"
        "nop\nnop\nnop\nnop\n"
        "; Start of program\n"
        "_start: ; label\n"
        "    mov ah,9\n"
        "    int 0x21\n"
        "    ret\n"
    )
    assert str(Disassembler(SAMPLE)) == expected
    assert disassemble(SAMPLE) == expected


def test_labels_can_be_switched_off():
    out = render(Disassembler(SAMPLE), DisassemblerOptions(write_labels=False))
    assert "_start: ; label" not in out
    assert "    mov" not in out
    assert "jmp _start ; label" in out


def test_misc_comments_can_be_switched_off():
    out = render(Disassembler(SAMPLE), DisassemblerOptions(misc_comments=False))
    assert "Start of program" not in out


def test_display_string_finds_string_constant():
    d = Disassembler(STRING_PROGRAM)
    assert d.register_tracker[Register.DX] == 0x108
    assert len(d.string_constant_list) == 1
    constant = d.string_constant_list[0]
    assert (constant.value, constant.start, constant.end) == ("Hi$", 0x108, 0x10B)
    texts = [c.comment_text for c in d.comment_list.get_comments(0x108)]
    assert texts == ["Start of string data"]


def test_string_constant_is_written_as_db_comment():
    out = str(Disassembler(STRING_PROGRAM))
    assert "; Start of string data\n" in out
    assert '; db "Hi$"\n' in out


def test_string_stops_at_nul():
    program = bytes([0xBA, 0x08, 0x01, 0xB4, 0x09, 0xCD, 0x21, 0xC3, 0x41, 0x00, 0x42])
    d = Disassembler(program)
    assert [s.value for s in d.string_constant_list] == ["A"]


def test_mov_register_copies_tracked_value():
    # mov al, 5 ; mov bl, al ; mov cl, dl
    d = Disassembler(bytes([0xB0, 0x05, 0x88, 0xC3, 0x88, 0xD1]))
    assert d.register_tracker[Register.BL] == 5
    assert d.register_tracker[Register.CL] == 0


def test_call_creates_function_label():
    d = Disassembler(bytes([0xE8, 0x01, 0x00, 0xC3, 0xC3]))
    label = d.labels.get_by_address(0x104)
    assert label is not None
    assert label.name == "FUNC_0x104"
    assert label.label_type is LabelType.FUNCTION
    out = str(d)
    assert "call FUNC_0x104 ; function" in out
    assert "FUNC_0x104: ; function\n" in out


def test_short_jump_elsewhere_creates_numbered_label():
    d = Disassembler(bytes([0x90, 0xEB, 0x00, 0xC3]))
    label = d.labels.get_by_address(0x103)
    assert label is not None
    assert label.name == "LABEL_0x0103"
    assert "jmp LABEL_0x0103 ; label" in str(d)


def test_unknown_service_is_left_out():
    d = Disassembler(bytes([0xB4, 0x70, 0xCD, 0x21]))
    assert len(d.syscall_list) == 0
    assert [i.mnemonic for i in d.instructions] == ["mov"]


def test_post_and_inline_comments():
    d = Disassembler(bytes([0x90, 0x90]))
    d.comment_list.append(Comment(CommentType.INLINE, "here", 0x100))
    d.comment_list.append(Comment(CommentType.POST, "after", 0x100))
    assert render(d) == "nop; here\n; after\nnop\n"


def test_pre_comment_at_start():
    d = Disassembler(bytes([0xC3]))
    d.comment_list.append(Comment(CommentType.PRE, "Disassembled", 0x100))
    assert str(d) == "; Disassembled\nret\n"