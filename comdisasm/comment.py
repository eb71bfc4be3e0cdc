"""Comments attached to addresses in the disassembly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .consts import Address


class CommentType(Enum):
    """Where a comment is placed relative to its instruction."""

    PRE = "pre"
    POST = "post"
    INLINE = "inline"


@dataclass(frozen=True)
class Comment:
    """A comment placed at an address of the disassembly."""

    comment_type: CommentType
    comment_text: str
    address: Address

    def __str__(self) -> str:
        return f"; {self.comment_text}"


class CommentList(list):
    """A list of comments that can be searched by address."""

    def get_comments(self, address: Address) -> list[Comment]:
        """Return every comment placed at ``address``, in insertion order."""
        return [comment for comment in self if comment.address == address]