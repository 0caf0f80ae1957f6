"""Name uniqueness and reference checks run before records are created.

Every check is a full scan or a keyed lookup against the live collections.
Name uniqueness is linear in the number of users, which is acceptable for the
bounded datasets this service targets and nothing more.
"""
from __future__ import annotations

import secrets

from .errors import DuplicateName, UnknownAuthor, UnknownQuote, ValidationError
from .models import Quote, User
from .storage import Database


def require_text(value: object, label: str) -> str:
    """Return ``value`` if it is a non-empty string, else raise ``ValidationError``."""

    if not isinstance(value, str) or not value:
        raise ValidationError(f"Invalid input: {label} must be a non-empty string.")
    return value


def pin_matches(provided: str, expected: str) -> bool:
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


class ReferenceValidator:
    """Resolve author/quote references and enforce unique user names."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def ensure_unique_name(self, name: str) -> None:
        for user in self._database.users.values():
            if user.name == name:
                raise DuplicateName("Sorry, this name is already in use...")

    def resolve_author(self, author_id: str) -> User:
        author = self._database.users.get(author_id)
        if author is None:
            raise UnknownAuthor("Author with given ID not found.")
        return author

    def resolve_quote(self, quote_id: str) -> Quote:
        quote = self._database.quotes.get(quote_id)
        if quote is None:
            raise UnknownQuote("No quote found with the given ID.")
        return quote


__all__ = ["ReferenceValidator", "pin_matches", "require_text"]
