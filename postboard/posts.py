"""
Post service: pagination, existence checks and author/admin authorization.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from postboard.db import DbClient, PostRecord, UserRecord
from postboard.errors import (
    InvalidPostIdError,
    PermissionDeniedError,
    PostNotFoundError,
    TooManyImagesError,
)
from postboard.storage import StorageClient
from shared.types import PageDescriptor, Role

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_POST_IMAGES = 4

# Canonical hyphenated UUID, any version.
POST_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)


@dataclass
class PostContent:
    title: str
    body: str


@dataclass
class PostView:
    post: PostRecord
    is_owner: bool = False


def coerce_page(value: Any) -> int:
    """
    Returns a 1-based page number. Anything that is not a positive integer becomes 1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value >= 1 else 1
    try:
        page = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def is_valid_post_id(post_id: str) -> bool:
    return bool(POST_ID_PATTERN.fullmatch(post_id or ""))


class PostService:
    def __init__(
        self,
        db: DbClient,
        storage: StorageClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_images: int = MAX_POST_IMAGES,
    ):
        self.db = db
        self.storage = storage
        self.page_size = page_size
        self.max_images = max_images

    def list_posts(self, page: Any = 1) -> tuple[list[PostRecord], PageDescriptor]:
        page = coerce_page(page)
        offset = (page - 1) * self.page_size
        posts, total = self.db.list_posts(limit=self.page_size, offset=offset)
        return posts, PageDescriptor.build(page, self.page_size, total)

    def get_post(self, post_id: str, viewer_id: Optional[str] = None) -> PostView:
        post = self._require_post(post_id)
        return PostView(post=post, is_owner=viewer_id is not None and viewer_id == post.author_id)

    def create_post(
        self, images: list[str], payload: PostContent, author: UserRecord
    ) -> str:
        if len(images) > self.max_images:
            raise TooManyImagesError(
                f"A post can have at most {self.max_images} images"
            )
        post = self.db.create_post(
            title=payload.title,
            body=payload.body,
            images=images,
            author_id=author.id,
        )
        logger.info("Post %s created by %s", post.id, author.id)
        return post.id

    def update_post(self, post_id: str, payload: PostContent, actor: UserRecord) -> None:
        post = self._require_post(post_id)
        self._check_can_modify(post, actor)
        if not self.db.update_post(post.id, title=payload.title, body=payload.body):
            raise PostNotFoundError()
        logger.info("Post %s updated by %s", post.id, actor.id)

    def delete_post(self, post_id: str, actor: UserRecord) -> None:
        post = self._require_post(post_id)
        self._check_can_modify(post, actor)
        if not self.db.delete_post(post.id):
            raise PostNotFoundError()
        logger.info("Post %s deleted by %s", post.id, actor.id)
        for path in post.images:
            try:
                self.storage.delete(path)
            except Exception:
                logger.warning("Could not delete image %s of post %s", path, post.id, exc_info=True)

    def _require_post(self, post_id: str) -> PostRecord:
        if not is_valid_post_id(post_id):
            raise InvalidPostIdError()
        # Stored ids are lowercase; accept either case like a uuid column would.
        post = self.db.get_post(str(uuid.UUID(post_id)))
        if post is None:
            raise PostNotFoundError()
        return post

    @staticmethod
    def _check_can_modify(post: PostRecord, actor: UserRecord) -> None:
        if actor.role == Role.ADMIN:
            return
        if actor.role == Role.AUTHOR and actor.id == post.author_id:
            return
        raise PermissionDeniedError()
