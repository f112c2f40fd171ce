"""
Pydantic schemas for the postboard API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from postboard.db import PostRecord, UserRecord
from postboard.posts import PostContent
from shared.types import PageDescriptor, Store


class PostPayload(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    body: str = Field(..., min_length=1, max_length=10000)

    def to_content(self) -> PostContent:
        return PostContent(title=self.title, body=self.body)


class PostResponse(BaseModel):
    id: str
    title: str
    body: str
    images: list[str]
    authorId: str
    createdAt: datetime
    isOwner: Optional[bool] = None

    @classmethod
    def from_record(
        cls, record: PostRecord, is_owner: Optional[bool] = None
    ) -> "PostResponse":
        return cls(
            id=record.id,
            title=record.title,
            body=record.body,
            images=list(record.images),
            authorId=record.author_id,
            createdAt=datetime.fromtimestamp(record.created_at, tz=timezone.utc),
            isOwner=is_owner,
        )


class PaginationResponse(BaseModel):
    page: int
    pageSize: int
    total: int
    totalPages: int

    @classmethod
    def from_descriptor(cls, descriptor: PageDescriptor) -> "PaginationResponse":
        return cls(
            page=descriptor.page,
            pageSize=descriptor.page_size,
            total=descriptor.total,
            totalPages=descriptor.total_pages,
        )


class ListPostsResponse(BaseModel):
    posts: list[PostResponse]
    pagination: PaginationResponse


class GetPostResponse(BaseModel):
    post: PostResponse


class CreatedResponse(BaseModel):
    id: str


class EmptyResponse(BaseModel):
    pass


class StoreResponse(BaseModel):
    id: int
    name: str
    addr: str
    review: str = ""

    @classmethod
    def from_store(cls, store: Store) -> "StoreResponse":
        return cls(id=store.id, name=store.name, addr=store.addr, review=store.review)


class CredentialsRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: str
    username: str
    role: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(id=record.id, username=record.username, role=record.role.value)
