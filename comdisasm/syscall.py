"""DOS ``int 21h`` services and the calls found in a program."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .consts import Address


class SyscallType(Enum):
    """The DOS service number selected in AH before ``int 21h``."""

    ProgramTerminate = 0x00
    CharacterInput = 0x01
    CharacterOutput = 0x02
    AuxiliaryInput = 0x03
    AuxiliaryOutput = 0x04
    PrinterOutput = 0x05
    DirectConsoleIO = 0x06
    DirectConsoleInputNoEcho = 0x07
    ConsoleInputNoEcho = 0x08
    DisplayString = 0x09
    BufferedKeyboardInput = 0x0A
    GetInputStatus = 0x0B
    FlushInputBuffer = 0x0C
    DiskReset = 0x0D
    SetDefaultDrive = 0x0E
    OpenFile = 0x0F
    CloseFile = 0x10
    FindFirstFile = 0x11
    FindNextFile = 0x12
    DeleteFile = 0x13
    SequentialRead = 0x14
    SequentialWrite = 0x15
    CreateOrTruncateFile = 0x16
    RenameFile = 0x17
    Reserved18 = 0x18
    GetDefaultDrive = 0x19
    SetDiskTransferAddress = 0x1A
    GetAllocInfoDefault = 0x1B
    GetAllocInfoSpecified = 0x1C
    Reserved1D = 0x1D
    Reserved1E = 0x1E
    GetDPBDefault = 0x1F
    Reserved20 = 0x20
    RandomRead = 0x21
    RandomWrite = 0x22
    GetFileSizeRecords = 0x23
    SetRandomRecordNumber = 0x24
    SetInterruptVector = 0x25
    CreatePSP = 0x26
    RandomBlockRead = 0x27
    RandomBlockWrite = 0x28
    ParseFilename = 0x29
    GetDate = 0x2A
    SetDate = 0x2B
    GetTime = 0x2C
    SetTime = 0x2D
    SetVerifyFlag = 0x2E
    GetDiskTransferAddress = 0x2F
    GetDosVersion = 0x30
    TerminateAndStayResident = 0x31
    GetDPBSpecified = 0x32
    GetOrSetCtrlBreak = 0x33
    GetInDOSFlag = 0x34
    GetInterruptVector = 0x35
    GetFreeDiskSpace = 0x36
    GetOrSetSwitchChar = 0x37
    GetOrSetCountryInfo = 0x38
    CreateSubdirectory = 0x39
    RemoveSubdirectory = 0x3A
    ChangeCurrentDirectory = 0x3B
    CreateFile = 0x3C
    OpenFile2 = 0x3D
    CloseFile2 = 0x3E
    ReadFileOrDevice = 0x3F
    WriteFileOrDevice = 0x40
    DeleteFile2 = 0x41
    MoveFilePointer = 0x42
    GetOrSetFileAttr = 0x43
    IOControl = 0x44
    DuplicateHandle = 0x45
    RedirectHandle = 0x46
    GetCurrentDirectory = 0x47
    AllocateMemory = 0x48
    ReleaseMemory = 0x49
    ReallocateMemory = 0x4A
    ExecuteProgram = 0x4B
    TerminateWithCode = 0x4C
    GetProgramReturnCode = 0x4D
    FindFirstFile2 = 0x4E
    FindNextFile2 = 0x4F
    SetCurrentPSP = 0x50
    GetCurrentPSP = 0x51
    GetDosInternalPointers = 0x52
    CreateDPB = 0x53
    GetVerifyFlag = 0x54
    CreateProgramPSP = 0x55
    RenameFile2 = 0x56
    GetOrSetFileDateTime = 0x57
    GetOrSetAllocStrategy = 0x58
    GetExtendedError = 0x59
    CreateUniqueFile = 0x5A
    CreateNewFile = 0x5B
    LockOrUnlockFile = 0x5C
    FileSharingFunctions = 0x5D
    NetworkFunctions = 0x5E
    NetworkRedirectionFunctions = 0x5F
    QualifyFilename = 0x60
    Reserved61 = 0x61
    GetCurrentPSPAlt = 0x62
    GetDBCSLeadByteTable = 0x63
    SetWaitForEvent = 0x64
    GetExtendedCountryInfo = 0x65
    GetOrSetCodePage = 0x66
    SetHandleCount = 0x67
    CommitFile = 0x68
    GetOrSetMediaID = 0x69
    CommitFileAlt = 0x6A
    Reserved6B = 0x6B
    ExtendedOpenCreateFile = 0x6C

    @classmethod
    def from_number(cls, number: int) -> SyscallType | None:
        """Return the service with this number, or None if there is none."""
        try:
            return cls(number)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"{self.name} 0x{self.value:02x}"


@dataclass(frozen=True)
class Syscall:
    """An ``int 21h`` call found at an address."""

    number: SyscallType
    address: Address


class SyscallList(list):
    """A list of syscalls that can be searched by address."""

    def get_by_address(self, address: Address) -> Syscall | None:
        """Return the first syscall at ``address``, or None."""
        return next((call for call in self if call.address == address), None)