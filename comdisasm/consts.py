"""Constants shared by the disassembler modules."""

from typing import TypeAlias

COM_OFFSET: int = 0x100
"""Load address of a DOS .COM program in its segment."""

SIZE: int = 16
"""Address size in bits."""

Address: TypeAlias = int
"""Any 16-bit address inside the program."""