"""Input payloads accepted by the write and lookup operations."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    # Payloads travel with camelCase keys (``pinCode``, ``authorId``).
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class NewUserPayload(_Payload):
    name: str = Field(..., min_length=1)
    pin_code: str = Field(..., min_length=1)


class NewQuotePayload(_Payload):
    author_id: str = Field(..., min_length=1)
    quote: str = Field(..., min_length=1)


class NewCommentPayload(_Payload):
    author_id: str = Field(..., min_length=1)
    quote_id: str = Field(..., min_length=1)
    comment: str = Field(..., min_length=1)


__all__ = ["NewUserPayload", "NewQuotePayload", "NewCommentPayload"]
