"""Delete operations that remove an entity together with its dependents.

Removal runs strictly top-down: a user, then the quotes it authored, then the
comments attached to each of those quotes. Dependent removals are best-effort.
A failure is logged and recorded on the :class:`CascadeReport`; siblings are
still processed and the parent removal is never undone.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import Mismatch, NotFound, QuotebookError, Unauthorized
from .models import Comment, Quote, User
from .storage import Database
from .validation import pin_matches, require_text

logger = logging.getLogger("quotebook.cascade")


@dataclass
class CascadeReport:
    """Dependents removed (and those that could not be) by one delete call."""

    quotes: List[str] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


class CascadeEngine:
    def __init__(self, database: Database) -> None:
        self._database = database

    def delete_user(self, user_id: str, pin_code: str) -> Tuple[User, CascadeReport]:
        require_text(user_id, "userId")
        require_text(pin_code, "pinCode")
        user = self._database.users.get(user_id)
        if user is None:
            raise NotFound("No user found with those credentials.")
        if not pin_matches(pin_code, user.pin_code):
            raise Unauthorized("Unable to delete user, wrong credentials.")

        removed = self._database.users.remove(user_id)
        if removed is None:
            raise NotFound("No user found with those credentials.")

        report = CascadeReport()
        owned = [quote for quote in self._database.quotes.values() if quote.author_id == user_id]
        for quote in owned:
            try:
                self._remove_quote(quote.id, user_id, report)
            except QuotebookError as exc:
                report.failures.append(quote.id)
                logger.warning(
                    "Failed to remove quote %s while deleting user %s: %s",
                    quote.id,
                    user_id,
                    exc,
                )
        return removed, report

    def delete_quote(self, quote_id: str, author_id: str) -> Tuple[Quote, CascadeReport]:
        require_text(quote_id, "quoteId")
        require_text(author_id, "authorId")
        report = CascadeReport()
        removed = self._remove_quote(quote_id, author_id, report)
        return removed, report

    def delete_comment(self, quote_id: str, comment_id: str, author_id: str) -> Comment:
        """Remove a single comment after checking it belongs to the quote and author.

        Both checks run before anything is removed, so a rejected call leaves
        the comment in place.
        """

        require_text(quote_id, "quoteId")
        require_text(comment_id, "commentId")
        require_text(author_id, "authorId")

        comment = self._database.comments.get(comment_id)
        if comment is None:
            raise NotFound("Comment with given Id not found.")
        if comment.quote_id != quote_id:
            raise Mismatch("This comment is not on the given quote.")
        if comment.author_id != author_id:
            raise Unauthorized("Unable to delete the comment, you are not the author.")

        removed = self._database.comments.remove(comment_id)
        if removed is None:
            raise NotFound("Comment with given Id not found.")
        return removed

    def _remove_quote(self, quote_id: str, author_id: str, report: CascadeReport) -> Quote:
        quote = self._database.quotes.get(quote_id)
        if quote is None:
            raise NotFound("Quote with given Id not found.")
        if quote.author_id != author_id:
            raise Unauthorized("You cannot delete the quote because you are not the owner.")

        removed = self._database.quotes.remove(quote_id)
        if removed is None:
            raise NotFound("Quote with given Id not found.")
        report.quotes.append(quote_id)

        self._purge_comments(quote_id, report)
        return removed

    def _purge_comments(self, quote_id: str, report: CascadeReport) -> None:
        # Comments from any author go with their quote; the quote owner's
        # authorisation covers them.
        attached = [comment for comment in self._database.comments.values() if comment.quote_id == quote_id]
        for comment in attached:
            try:
                self._database.comments.remove(comment.id)
            except QuotebookError as exc:
                report.failures.append(comment.id)
                logger.warning(
                    "Failed to remove comment %s while deleting quote %s: %s",
                    comment.id,
                    quote_id,
                    exc,
                )
                continue
            report.comments.append(comment.id)


__all__ = ["CascadeEngine", "CascadeReport"]
