"""Domain records persisted by the quotebook collections."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the ``users`` collection."""

    id: str
    name: str
    pin_code: str
    created: int
    last_update: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "User":
        return cls(**data)


@dataclass(frozen=True)
class Quote:
    """A quote plus the author name captured when it was created."""

    id: str
    author_id: str
    author: str
    quote: str
    created: int
    last_update: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Quote":
        return cls(**data)


@dataclass(frozen=True)
class Comment:
    id: str
    author_id: str
    author_name: str
    quote_id: str
    comment: str
    created: int
    last_update: Optional[int] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> "Comment":
        return cls(**data)


@dataclass(frozen=True)
class QuoteToDisplay:
    id: str
    quote: str
    author: str


@dataclass(frozen=True)
class CommentsToDisplay:
    comment: str
    author: str


__all__ = ["User", "Quote", "Comment", "QuoteToDisplay", "CommentsToDisplay"]
