from __future__ import annotations

from pathlib import Path

import pytest

from quotebook.cascade import CascadeEngine
from quotebook.errors import Mismatch, NotFound, StorageFault, Unauthorized, UnknownQuote, ValidationError
from quotebook.service import QuoteService
from quotebook.storage import Database


@pytest.fixture()
def service(tmp_path: Path) -> QuoteService:
    database = Database(tmp_path / "quotebook.sqlite3")
    database.initialize()
    return QuoteService(database)


def _seed(service: QuoteService):
    alice = service.new_user({"name": "alice", "pinCode": "1111"}).unwrap()
    bob = service.new_user({"name": "bob", "pinCode": "2222"}).unwrap()
    quotes = [
        service.new_quote({"authorId": alice.id, "quote": text}).unwrap()
        for text in ("first", "second")
    ]
    bob_quote = service.new_quote({"authorId": bob.id, "quote": "bob's"}).unwrap()
    comments = []
    for quote in [*quotes, bob_quote]:
        for author in (alice, bob):
            comments.append(
                service.add_comment(
                    {"authorId": author.id, "quoteId": quote.id, "comment": f"from {author.name}"}
                ).unwrap()
            )
    return alice, bob, quotes, bob_quote, comments


def test_delete_user_removes_their_quotes_and_every_comment_on_them(service: QuoteService) -> None:
    alice, bob, quotes, bob_quote, _ = _seed(service)
    database = service.database

    result = service.delete_user(alice.id, "1111")

    assert result.ok
    assert database.users.get(alice.id) is None
    assert [quote.id for quote in database.quotes.values()] == [bob_quote.id]
    removed_ids = {quote.id for quote in quotes}
    assert not [c for c in database.comments.values() if c.quote_id in removed_ids]
    # Alice's comment on Bob's quote is not a dependent of her quotes.
    remaining = database.comments.values()
    assert {(c.quote_id, c.author_name) for c in remaining} == {
        (bob_quote.id, "alice"),
        (bob_quote.id, "bob"),
    }
    for quote in quotes:
        assert isinstance(service.get_quote_comments(quote.id).error, UnknownQuote)
    assert service.database.users.get(bob.id) is not None


def test_delete_user_rejects_unknown_id_and_wrong_pin(service: QuoteService) -> None:
    alice, *_ = _seed(service)

    assert isinstance(service.delete_user("missing", "1111").error, NotFound)
    assert isinstance(service.delete_user(alice.id, "9999").error, Unauthorized)
    assert service.database.users.get(alice.id) is not None
    assert len(service.database.quotes) == 3


def test_delete_quote_by_non_owner_keeps_the_quote(service: QuoteService) -> None:
    alice, bob, quotes, _, _ = _seed(service)

    result = service.delete_quote(quotes[0].id, bob.id)

    assert isinstance(result.error, Unauthorized)
    assert service.database.quotes.get(quotes[0].id) is not None
    assert len(service.get_quote_comments(quotes[0].id).unwrap()) == 2


def test_delete_quote_removes_comments_from_all_authors(service: QuoteService) -> None:
    alice, bob, quotes, _, _ = _seed(service)

    deleted = service.delete_quote(quotes[0].id, alice.id).unwrap()

    assert deleted.id == quotes[0].id
    assert not [c for c in service.database.comments.values() if c.quote_id == quotes[0].id]
    assert len(service.database.comments) == 4
    assert isinstance(service.delete_quote(quotes[0].id, alice.id).error, NotFound)


def test_delete_comment_validates_before_removing(service: QuoteService) -> None:
    alice, bob, quotes, bob_quote, comments = _seed(service)
    bobs_comment = next(c for c in comments if c.quote_id == quotes[0].id and c.author_id == bob.id)

    mismatch = service.delete_comment(bob_quote.id, bobs_comment.id, bob.id)
    assert isinstance(mismatch.error, Mismatch)

    not_author = service.delete_comment(quotes[0].id, bobs_comment.id, alice.id)
    assert isinstance(not_author.error, Unauthorized)

    assert service.database.comments.get(bobs_comment.id) is not None

    removed = service.delete_comment(quotes[0].id, bobs_comment.id, bob.id).unwrap()
    assert removed.id == bobs_comment.id
    assert service.database.comments.get(bobs_comment.id) is None
    assert isinstance(service.delete_comment(quotes[0].id, bobs_comment.id, bob.id).error, NotFound)


def test_failed_comment_removal_does_not_stop_the_cascade(service: QuoteService, monkeypatch) -> None:
    alice, _, quotes, _, comments = _seed(service)
    database = service.database
    stuck = next(c for c in comments if c.quote_id == quotes[0].id)
    original_remove = database.comments.remove

    def flaky_remove(key: str):
        if key == stuck.id:
            raise StorageFault("disk unavailable")
        return original_remove(key)

    monkeypatch.setattr(database.comments, "remove", flaky_remove)

    engine = CascadeEngine(database)
    user, report = engine.delete_user(alice.id, "1111")

    assert user.id == alice.id
    assert database.users.get(alice.id) is None
    assert report.quotes == [quote.id for quote in quotes]
    assert report.failures == [stuck.id]
    assert not report.complete
    assert len(report.comments) == 3
    assert [c.id for c in database.comments.values() if c.quote_id in report.quotes] == [stuck.id]


def test_failed_quote_removal_continues_with_siblings(service: QuoteService, monkeypatch) -> None:
    alice, _, quotes, _, _ = _seed(service)
    database = service.database
    original_remove = database.quotes.remove

    def flaky_remove(key: str):
        if key == quotes[0].id:
            raise StorageFault("disk unavailable")
        return original_remove(key)

    monkeypatch.setattr(database.quotes, "remove", flaky_remove)

    result = service.delete_user(alice.id, "1111")

    assert result.ok
    assert database.quotes.get(quotes[0].id) is not None
    assert database.quotes.get(quotes[1].id) is None
    assert not [c for c in database.comments.values() if c.quote_id == quotes[1].id]


def test_non_string_arguments_are_validation_errors(service: QuoteService) -> None:
    alice, bob, quotes, _, comments = _seed(service)

    assert isinstance(service.delete_user(alice.id, 1111).error, ValidationError)
    assert isinstance(service.delete_user(["u"], "1111").error, ValidationError)
    assert isinstance(service.delete_user(alice.id, "").error, ValidationError)
    assert isinstance(service.delete_quote(["q"], alice.id).error, ValidationError)
    assert isinstance(service.delete_quote(quotes[0].id, None).error, ValidationError)
    assert isinstance(service.delete_comment(quotes[0].id, 7, bob.id).error, ValidationError)
    assert isinstance(service.get_quote_comments(["q"]).error, ValidationError)

    assert service.database.users.get(alice.id) is not None
    assert len(service.database.quotes) == 3
    assert len(service.database.comments) == len(comments)
