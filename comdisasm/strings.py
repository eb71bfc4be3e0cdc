"""String constants found in the program's data."""

from __future__ import annotations

from dataclasses import dataclass

from .consts import Address


def _is_printable(byte: int) -> bool:
    return 0x21 <= byte <= 0x7E or byte == 0x20


@dataclass(frozen=True)
class StringConstant:
    """A string stored in the program between ``start`` and ``end``."""

    value: str
    start: Address
    end: Address

    def __post_init__(self) -> None:
        if self.end - self.start != len(self):
            raise ValueError(
                "The length of the string does not match the length of the address range"
            )

    def __len__(self) -> int:
        """Length of the string in bytes (UTF-8)."""
        return len(self.value.encode("utf-8"))

    def as_db_statement(self) -> str:
        """Render the string as a NASM ``db`` statement."""
        statement = "db "
        in_quotes = False

        for byte in self.value.encode("utf-8"):
            if _is_printable(byte):
                if not in_quotes:
                    if not statement.endswith("db "):
                        statement += ", "
                    statement += '"'
                    in_quotes = True
                statement += '\\"' if byte == 0x22 else chr(byte)
            else:
                if in_quotes:
                    statement += '"'
                    in_quotes = False
                if not statement.endswith("db ") and not statement.endswith(", "):
                    statement += ", "
                statement += f"0x{byte:02X}"

        if in_quotes:
            statement += '"'
        return statement


class StringConstantList(list):
    """A list of string constants that can be searched by address."""

    def get_string_constant(self, address: Address) -> StringConstant | None:
        """Return the first constant whose range includes ``address``, or None."""
        return next((s for s in self if s.start <= address <= s.end), None)