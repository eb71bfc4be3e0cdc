import pytest

from comdisasm.syscall import Syscall, SyscallList, SyscallType


def sample_syscall(address):
    return Syscall(number=SyscallType.DisplayString, address=address)


def test_value_returns_expected_number():
    display = SyscallType.from_number(0x09)
    terminate = SyscallType.from_number(0x4C)
    assert display is SyscallType.DisplayString
    assert display.value == 0x09
    assert terminate is SyscallType.TerminateWithCode
    assert terminate.value == 0x4C


def test_from_number_roundtrips_known_value():
    call = SyscallType.from_number(0x21)
    assert call is SyscallType.RandomRead
    assert call.value == 0x21


def test_from_number_upper_boundary():
    assert SyscallType.from_number(0x6C) is SyscallType.ExtendedOpenCreateFile


@pytest.mark.parametrize("number", [0x6D, 0xFFFF])
def test_from_number_rejects_out_of_range(number):
    assert SyscallType.from_number(number) is None


def test_from_number_covers_whole_table():
    assert [SyscallType.from_number(n).value for n in range(0x6D)] == list(range(0x6D))


def test_display_shows_name_and_hex():
    assert str(SyscallType.from_number(0x09)) == "DisplayString 0x09"
    assert str(SyscallType.from_number(0x4C)) == "TerminateWithCode 0x4c"


def test_display_in_format_string():
    call = SyscallType.from_number(0x00)
    assert f"{call}" == "ProgramTerminate 0x00"


def test_new_syscall_list_is_empty():
    assert len(SyscallList()) == 0


def test_get_by_address_finds_correct_syscall():
    calls = SyscallList()
    call = sample_syscall(0x1234)
    calls.append(call)

    assert calls.get_by_address(0x1234) == call
    assert calls.get_by_address(0xBEEF) is None


def test_get_by_address_returns_first_match():
    first = Syscall(SyscallType.GetDate, 0x200)
    second = Syscall(SyscallType.SetDate, 0x200)
    calls = SyscallList([first, second])
    assert calls.get_by_address(0x200) is first


def test_syscall_equality_is_structural():
    a = sample_syscall(0x0100)
    b = sample_syscall(0x0100)
    c = sample_syscall(0x0101)

    assert a == b
    assert a != c


def test_syscall_is_immutable():
    call = sample_syscall(0x0100)
    with pytest.raises(AttributeError):
        call.address = 0x0200
    assert call.address == 0x0100
    assert call.number is SyscallType.DisplayString