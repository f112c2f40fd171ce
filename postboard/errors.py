"""
Domain errors raised below the HTTP layer.

Each error carries the status code and message it is rendered with, so
``create_app`` can translate all of them with a single handler.
"""

from __future__ import annotations

INVALID_POST_ID_MESSAGE = "This post does not exist."


class PostboardError(Exception):
    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class InvalidPostIdError(PostboardError):
    status_code = 400
    message = INVALID_POST_ID_MESSAGE


class PostNotFoundError(PostboardError):
    status_code = 404
    message = "Post not found"


class PermissionDeniedError(PostboardError):
    status_code = 403
    message = "Only the author or an admin can change this post"


class TooManyImagesError(PostboardError):
    status_code = 400
    message = "Too many images"


class InvalidImageError(PostboardError):
    status_code = 400
    message = "Uploaded file is not a readable image"


class StoreNotFoundError(PostboardError):
    status_code = 404
    message = "Store not found"


class DuplicateUserError(PostboardError):
    status_code = 409
    message = "Username already taken"
