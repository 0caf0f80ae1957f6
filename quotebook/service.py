"""Operation boundary for the quotebook record service.

Each public method of :class:`QuoteService` is one request/response
operation. Calls are serialised by a lock so that only one operation runs at a
time, and every failure is returned as a :class:`Result` rather than raised.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from .cascade import CascadeEngine, CascadeReport
from .config import Settings
from .errors import NotFound, QuotebookError, StorageFault, ValidationError
from .models import Comment, CommentsToDisplay, Quote, QuoteToDisplay, User
from .projection import list_quote_comments, list_quotes
from .schemas import NewCommentPayload, NewQuotePayload, NewUserPayload
from .storage import CollectionStore, Database
from .validation import ReferenceValidator, pin_matches

logger = logging.getLogger("quotebook.service")

T = TypeVar("T")
P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one operation: either ``value`` or ``error`` is set."""

    value: Optional[T] = None
    error: Optional[QuotebookError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: QuotebookError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class _Clock:
    """Nanosecond wall-clock timestamps that never repeat or go backwards."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        current = time.time_ns()
        if current <= self._last:
            current = self._last + 1
        self._last = current
        return current


def _parse_payload(model: Type[P], payload: Union[P, Mapping[str, Any], None]) -> P:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PayloadError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) or "payload" for error in exc.errors()})
        raise ValidationError(f"Invalid input: {', '.join(fields)} required.") from exc


def _operation(name: str) -> Callable[[Callable[..., T]], Callable[..., Result[T]]]:
    """Run the wrapped method under the service lock and capture failures."""

    def decorator(func: Callable[..., T]) -> Callable[..., Result[T]]:
        @functools.wraps(func)
        def wrapper(self: "QuoteService", *args: Any, **kwargs: Any) -> Result[T]:
            with self._lock:
                try:
                    value = func(self, *args, **kwargs)
                except StorageFault as exc:
                    logger.error("%s failed with a storage fault: %s", name, exc.message)
                    return Result.failure(exc)
                except QuotebookError as exc:
                    logger.debug("%s rejected: %s (%s)", name, exc.code, exc.message)
                    return Result.failure(exc)
            return Result.success(value)

        return wrapper

    return decorator


class QuoteService:
    """Create, look up and delete users, quotes and comments."""

    def __init__(self, database: Database) -> None:
        self._database = database
        self._validator = ReferenceValidator(database)
        self._cascade = CascadeEngine(database)
        self._clock = _Clock()
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "QuoteService":
        database = Database(
            settings.database_path,
            max_user_bytes=settings.max_user_bytes,
            max_quote_bytes=settings.max_quote_bytes,
            max_comment_bytes=settings.max_comment_bytes,
        )
        database.initialize()
        return cls(database)

    @property
    def database(self) -> Database:
        return self._database

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @_operation("getAllQuotes")
    def get_all_quotes(self) -> List[QuoteToDisplay]:
        return list_quotes(self._database)

    @_operation("getQuoteComments")
    def get_quote_comments(self, quote_id: str) -> List[CommentsToDisplay]:
        return list_quote_comments(self._database, quote_id)

    @_operation("getMyUserData")
    def get_my_user_data(self, payload: Union[NewUserPayload, Mapping[str, Any]]) -> User:
        credentials = _parse_payload(NewUserPayload, payload)
        for user in self._database.users.values():
            if user.name == credentials.name and pin_matches(credentials.pin_code, user.pin_code):
                return user
        raise NotFound("No user found with these credentials")

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    @_operation("newUser")
    def new_user(self, payload: Union[NewUserPayload, Mapping[str, Any]]) -> User:
        data = _parse_payload(NewUserPayload, payload)
        self._validator.ensure_unique_name(data.name)

        user = User(
            id=self._new_id(self._database.users),
            name=data.name,
            pin_code=data.pin_code,
            created=self._clock.now(),
            last_update=None,
        )
        self._database.users.insert(user.id, user)
        logger.info("Created user %s", user.id)
        return user

    @_operation("newQuote")
    def new_quote(self, payload: Union[NewQuotePayload, Mapping[str, Any]]) -> Quote:
        data = _parse_payload(NewQuotePayload, payload)
        author = self._validator.resolve_author(data.author_id)

        quote = Quote(
            id=self._new_id(self._database.quotes),
            author_id=author.id,
            author=author.name,
            quote=data.quote,
            created=self._clock.now(),
            last_update=None,
        )
        self._database.quotes.insert(quote.id, quote)
        logger.info("User %s created quote %s", author.id, quote.id)
        return quote

    @_operation("addComment")
    def add_comment(self, payload: Union[NewCommentPayload, Mapping[str, Any]]) -> Comment:
        data = _parse_payload(NewCommentPayload, payload)
        author = self._validator.resolve_author(data.author_id)
        quote = self._validator.resolve_quote(data.quote_id)

        comment = Comment(
            id=self._new_id(self._database.comments),
            author_id=author.id,
            author_name=author.name,
            quote_id=quote.id,
            comment=data.comment,
            created=self._clock.now(),
            last_update=None,
        )
        self._database.comments.insert(comment.id, comment)
        logger.info("User %s commented %s on quote %s", author.id, comment.id, quote.id)
        return comment

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------
    @_operation("deleteQuote")
    def delete_quote(self, quote_id: str, author_id: str) -> Quote:
        quote, report = self._cascade.delete_quote(quote_id, author_id)
        self._log_cascade("quote", quote_id, report)
        return quote

    @_operation("deleteComment")
    def delete_comment(self, quote_id: str, comment_id: str, author_id: str) -> Comment:
        comment = self._cascade.delete_comment(quote_id, comment_id, author_id)
        logger.info("Deleted comment %s from quote %s", comment_id, quote_id)
        return comment

    @_operation("deleteUser")
    def delete_user(self, user_id: str, pin_code: str) -> User:
        user, report = self._cascade.delete_user(user_id, pin_code)
        self._log_cascade("user", user_id, report)
        return user

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _new_id(collection: CollectionStore[Any]) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in collection:
                return candidate

    @staticmethod
    def _log_cascade(kind: str, entity_id: str, report: CascadeReport) -> None:
        logger.info(
            "Deleted %s %s with %d quote(s) and %d comment(s)",
            kind,
            entity_id,
            len(report.quotes),
            len(report.comments),
        )
        if not report.complete:
            logger.warning(
                "Cascade for %s %s left %d dependent(s) behind: %s",
                kind,
                entity_id,
                len(report.failures),
                ", ".join(report.failures),
            )


__all__ = ["QuoteService", "Result"]
