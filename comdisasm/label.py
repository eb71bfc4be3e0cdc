"""Labels discovered in the disassembled code."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .consts import Address


class LabelType(Enum):
    """The kind of label and the reason it was created."""

    LABEL = "label"
    FUNCTION = "function"
    DATA = "data"


@dataclass(frozen=True)
class Label:
    """A named address in the disassembled code."""

    address: Address
    label_type: LabelType
    name: str

    def __str__(self) -> str:
        return f"{self.name}: ; {self.label_type.value}"


class LabelList(list):
    """A list of labels that can be searched by address."""

    def get_by_address(self, address: Address) -> Label | None:
        """Return the first label at ``address``, or None."""
        return next((label for label in self if label.address == address), None)

    def __str__(self) -> str:
        return "".join(f"{label}\n" for label in self)