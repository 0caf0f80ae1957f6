import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import quotebook
from quotebook.api import create_app
from quotebook.config import Settings
from quotebook.service import QuoteService
from quotebook.storage import Database


@pytest.fixture
def client(tmp_path):
    database = Database(tmp_path / "quotebook.sqlite3")
    database.initialize()
    app = create_app(service=QuoteService(database))
    with TestClient(app) as test_client:
        yield test_client


def _create_user(client, name="alice", pin_code="1111"):
    response = client.post("/users", json={"name": name, "pinCode": pin_code})
    assert response.status_code == 201, response.text
    return response.json()


def test_healthcheck(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_user_round_trip_uses_camel_case_fields(client):
    user = _create_user(client)
    assert user["name"] == "alice"
    assert user["pinCode"] == "1111"
    assert user["lastUpdate"] is None
    assert isinstance(user["created"], int)

    lookup = client.post("/users/me", json={"name": "alice", "pinCode": "1111"})
    assert lookup.status_code == 200
    assert lookup.json()["id"] == user["id"]

    wrong = client.post("/users/me", json={"name": "alice", "pinCode": "0000"})
    assert wrong.status_code == 404
    assert wrong.json()["detail"]["code"] == "NotFound"


def test_duplicate_name_conflicts(client):
    _create_user(client)
    response = client.post("/users", json={"name": "alice", "pinCode": "2222"})
    assert response.status_code == 409
    assert response.json()["detail"] == {
        "code": "DuplicateName",
        "message": "Sorry, this name is already in use...",
    }


def test_missing_fields_are_rejected(client):
    response = client.post("/users", json={"name": "alice"})
    assert response.status_code == 422


def test_empty_quote_list_is_an_error(client):
    response = client.get("/quotes")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "EmptyResult"


def test_quote_and_comment_lifecycle(client):
    user = _create_user(client)

    unknown = client.post("/quotes", json={"authorId": "missing", "quote": "hello"})
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["code"] == "UnknownAuthor"

    quote = client.post("/quotes", json={"authorId": user["id"], "quote": "hello"})
    assert quote.status_code == 201
    quote_payload = quote.json()
    assert quote_payload["author"] == "alice"
    assert quote_payload["authorId"] == user["id"]

    listing = client.get("/quotes")
    assert listing.status_code == 200
    assert listing.json() == [{"id": quote_payload["id"], "quote": "hello", "author": "alice"}]

    empty = client.get(f"/quotes/{quote_payload['id']}/comments")
    assert empty.status_code == 404
    assert empty.json()["detail"]["code"] == "NoComments"

    comment = client.post(
        "/comments",
        json={"authorId": user["id"], "quoteId": quote_payload["id"], "comment": "nice"},
    )
    assert comment.status_code == 201
    comment_payload = comment.json()
    assert comment_payload["authorName"] == "alice"

    comments = client.get(f"/quotes/{quote_payload['id']}/comments")
    assert comments.status_code == 200
    assert comments.json() == [{"comment": "nice", "author": "alice"}]

    mismatch = client.delete(
        f"/quotes/other/comments/{comment_payload['id']}",
        params={"authorId": user["id"]},
    )
    assert mismatch.status_code == 409
    assert mismatch.json()["detail"]["code"] == "Mismatch"

    removed = client.delete(
        f"/quotes/{quote_payload['id']}/comments/{comment_payload['id']}",
        params={"authorId": user["id"]},
    )
    assert removed.status_code == 200
    assert removed.json()["id"] == comment_payload["id"]


def test_delete_quote_requires_owner(client):
    alice = _create_user(client)
    bob = _create_user(client, "bob", "2222")
    quote = client.post("/quotes", json={"authorId": alice["id"], "quote": "hello"}).json()

    forbidden = client.delete(f"/quotes/{quote['id']}", params={"authorId": bob["id"]})
    assert forbidden.status_code == 403
    assert client.get("/quotes").status_code == 200

    deleted = client.delete(f"/quotes/{quote['id']}", params={"authorId": alice["id"]})
    assert deleted.status_code == 200
    assert deleted.json()["id"] == quote["id"]

    missing = client.delete(f"/quotes/{quote['id']}", params={"authorId": alice["id"]})
    assert missing.status_code == 404


def test_delete_user_cascades(client):
    user = _create_user(client)
    quote = client.post("/quotes", json={"authorId": user["id"], "quote": "hello"}).json()
    client.post("/comments", json={"authorId": user["id"], "quoteId": quote["id"], "comment": "nice"})

    wrong_pin = client.request("DELETE", f"/users/{user['id']}", json={"pinCode": "0000"})
    assert wrong_pin.status_code == 403

    deleted = client.request("DELETE", f"/users/{user['id']}", json={"pinCode": "1111"})
    assert deleted.status_code == 200
    assert deleted.json()["id"] == user["id"]

    comments = client.get(f"/quotes/{quote['id']}/comments")
    assert comments.status_code == 404
    assert comments.json()["detail"]["code"] == "UnknownQuote"
    assert client.get("/quotes").json()["detail"]["code"] == "EmptyResult"


def test_create_app_builds_service_from_settings(tmp_path):
    settings = Settings(database_path=tmp_path / "nested" / "quotebook.sqlite3")
    app = quotebook.create_app(settings=settings)

    with TestClient(app) as test_client:
        assert test_client.post("/users", json={"name": "carol", "pinCode": "3"}).status_code == 201

    assert (tmp_path / "nested" / "quotebook.sqlite3").exists()
    assert len(app.state.service.database.users) == 1
