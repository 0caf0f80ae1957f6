"""FastAPI application that exposes the quotebook operations over HTTP."""
from __future__ import annotations

from typing import Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import Settings, load_settings
from .models import Comment, CommentsToDisplay, Quote, QuoteToDisplay, User
from .schemas import NewCommentPayload, NewQuotePayload, NewUserPayload
from .service import QuoteService, Result

T = TypeVar("T")

_STATUS_BY_CODE: Dict[str, int] = {
    "ValidationError": status.HTTP_400_BAD_REQUEST,
    "DuplicateName": status.HTTP_409_CONFLICT,
    "UnknownAuthor": status.HTTP_404_NOT_FOUND,
    "UnknownQuote": status.HTTP_404_NOT_FOUND,
    "NotFound": status.HTTP_404_NOT_FOUND,
    "EmptyResult": status.HTTP_404_NOT_FOUND,
    "NoComments": status.HTTP_404_NOT_FOUND,
    "Unauthorized": status.HTTP_403_FORBIDDEN,
    "Mismatch": status.HTTP_409_CONFLICT,
    "StorageFault": status.HTTP_507_INSUFFICIENT_STORAGE,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(_CamelModel):
    id: str
    name: str
    pin_code: str
    created: int
    last_update: Optional[int] = None


class QuoteResponse(_CamelModel):
    id: str
    author_id: str
    author: str
    quote: str
    created: int
    last_update: Optional[int] = None


class CommentResponse(_CamelModel):
    id: str
    author_id: str
    author_name: str
    quote_id: str
    comment: str
    created: int
    last_update: Optional[int] = None


class QuoteDisplayResponse(_CamelModel):
    id: str
    quote: str
    author: str


class CommentDisplayResponse(_CamelModel):
    comment: str
    author: str


class DeleteUserRequest(_CamelModel):
    pin_code: str = Field(..., min_length=1)


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        pin_code=user.pin_code,
        created=user.created,
        last_update=user.last_update,
    )


def quote_to_response(quote: Quote) -> QuoteResponse:
    return QuoteResponse(
        id=quote.id,
        author_id=quote.author_id,
        author=quote.author,
        quote=quote.quote,
        created=quote.created,
        last_update=quote.last_update,
    )


def comment_to_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        author_id=comment.author_id,
        author_name=comment.author_name,
        quote_id=comment.quote_id,
        comment=comment.comment,
        created=comment.created,
        last_update=comment.last_update,
    )


def display_to_response(view: QuoteToDisplay) -> QuoteDisplayResponse:
    return QuoteDisplayResponse(id=view.id, quote=view.quote, author=view.author)


def comment_display_to_response(view: CommentsToDisplay) -> CommentDisplayResponse:
    return CommentDisplayResponse(comment=view.comment, author=view.author)


def unwrap_result(result: Result[T]) -> T:
    """Return the value of ``result`` or raise the matching ``HTTPException``."""

    if result.error is not None:
        raise HTTPException(
            status_code=_STATUS_BY_CODE.get(result.error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error.to_dict(),
        )
    return result.value  # type: ignore[return-value]


def create_app(
    *,
    service: QuoteService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    if service is None:
        if settings is None:
            settings = load_settings()
        service = QuoteService.from_settings(settings)

    app = FastAPI(
        title="Quotebook",
        description="Persistent quotes, comments and users with cascading deletes",
        version="1.0.0",
    )
    app.state.service = service

    def get_service() -> QuoteService:
        return service

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/quotes", response_model=List[QuoteDisplayResponse], name="getAllQuotes")
    def get_all_quotes(svc: QuoteService = Depends(get_service)) -> List[QuoteDisplayResponse]:
        quotes = unwrap_result(svc.get_all_quotes())
        return [display_to_response(view) for view in quotes]

    @app.get(
        "/quotes/{quote_id}/comments",
        response_model=List[CommentDisplayResponse],
        name="getQuoteComments",
    )
    def get_quote_comments(quote_id: str, svc: QuoteService = Depends(get_service)) -> List[CommentDisplayResponse]:
        comments = unwrap_result(svc.get_quote_comments(quote_id))
        return [comment_display_to_response(view) for view in comments]

    @app.post("/users/me", response_model=UserResponse, name="getMyUserData")
    def get_my_user_data(payload: NewUserPayload, svc: QuoteService = Depends(get_service)) -> UserResponse:
        return user_to_response(unwrap_result(svc.get_my_user_data(payload)))

    @app.post(
        "/users",
        response_model=UserResponse,
        status_code=status.HTTP_201_CREATED,
        name="newUser",
    )
    def new_user(payload: NewUserPayload, svc: QuoteService = Depends(get_service)) -> UserResponse:
        return user_to_response(unwrap_result(svc.new_user(payload)))

    @app.post(
        "/quotes",
        response_model=QuoteResponse,
        status_code=status.HTTP_201_CREATED,
        name="newQuote",
    )
    def new_quote(payload: NewQuotePayload, svc: QuoteService = Depends(get_service)) -> QuoteResponse:
        return quote_to_response(unwrap_result(svc.new_quote(payload)))

    @app.post(
        "/comments",
        response_model=CommentResponse,
        status_code=status.HTTP_201_CREATED,
        name="addComment",
    )
    def add_comment(payload: NewCommentPayload, svc: QuoteService = Depends(get_service)) -> CommentResponse:
        return comment_to_response(unwrap_result(svc.add_comment(payload)))

    @app.delete("/quotes/{quote_id}", response_model=QuoteResponse, name="deleteQuote")
    def delete_quote(
        quote_id: str,
        author_id: str = Query(..., alias="authorId", min_length=1),
        svc: QuoteService = Depends(get_service),
    ) -> QuoteResponse:
        return quote_to_response(unwrap_result(svc.delete_quote(quote_id, author_id)))

    @app.delete(
        "/quotes/{quote_id}/comments/{comment_id}",
        response_model=CommentResponse,
        name="deleteComment",
    )
    def delete_comment(
        quote_id: str,
        comment_id: str,
        author_id: str = Query(..., alias="authorId", min_length=1),
        svc: QuoteService = Depends(get_service),
    ) -> CommentResponse:
        return comment_to_response(unwrap_result(svc.delete_comment(quote_id, comment_id, author_id)))

    @app.delete("/users/{user_id}", response_model=UserResponse, name="deleteUser")
    def delete_user(
        user_id: str,
        payload: DeleteUserRequest,
        svc: QuoteService = Depends(get_service),
    ) -> UserResponse:
        return user_to_response(unwrap_result(svc.delete_user(user_id, payload.pin_code)))

    return app


__all__ = ["create_app", "unwrap_result"]
