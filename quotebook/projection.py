"""Read-only views that strip identifiers and secrets from stored records."""
from __future__ import annotations

from typing import List

from .errors import EmptyResult, NoComments, UnknownQuote
from .models import Comment, CommentsToDisplay, Quote, QuoteToDisplay
from .storage import Database
from .validation import require_text


def quote_to_display(quote: Quote) -> QuoteToDisplay:
    return QuoteToDisplay(id=quote.id, quote=quote.quote, author=quote.author)


def comment_to_display(comment: Comment) -> CommentsToDisplay:
    return CommentsToDisplay(comment=comment.comment, author=comment.author_name)


def list_quotes(database: Database) -> List[QuoteToDisplay]:
    """Return every stored quote, failing when there are none."""

    quotes = database.quotes.values()
    if not quotes:
        raise EmptyResult("At the moment there is no quote...")
    return [quote_to_display(quote) for quote in quotes]


def list_quote_comments(database: Database, quote_id: str) -> List[CommentsToDisplay]:
    """Return the comments attached to ``quote_id``.

    A missing quote is reported before an empty comment list.
    """

    require_text(quote_id, "quoteId")
    if database.quotes.get(quote_id) is None:
        raise UnknownQuote("No quote found with the given ID.")

    comments = [comment for comment in database.comments.values() if comment.quote_id == quote_id]
    if not comments:
        raise NoComments("No comments found for this quote.")
    return [comment_to_display(comment) for comment in comments]


__all__ = [
    "quote_to_display",
    "comment_to_display",
    "list_quotes",
    "list_quote_comments",
]
