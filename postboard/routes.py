"""
HTTP routes for posts, stores and authentication.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError

from postboard.config import get_settings
from postboard.db import DbClient, UserRecord
from postboard.dependencies import get_db_client, get_post_service, get_storage_client
from postboard.errors import StoreNotFoundError
from postboard.images import store_post_images
from postboard.posts import PostService
from postboard.schemas import (
    CreatedResponse,
    CredentialsRequest,
    EmptyResponse,
    GetPostResponse,
    ListPostsResponse,
    LoginRequest,
    PaginationResponse,
    PostPayload,
    PostResponse,
    StoreResponse,
    TokenResponse,
    UserResponse,
)
from postboard.security import (
    create_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    require_roles,
    verify_password,
)
from postboard.storage import StorageClient
from shared.types import Role

logger = logging.getLogger(__name__)

posts_router = APIRouter()
stores_router = APIRouter()
auth_router = APIRouter()

can_write_posts = require_roles(Role.AUTHOR, Role.ADMIN)


@posts_router.get("", response_model=ListPostsResponse)
def list_posts(
    page: Optional[str] = Query(None),
    service: PostService = Depends(get_post_service),
):
    posts, descriptor = service.list_posts(page)
    return ListPostsResponse(
        posts=[PostResponse.from_record(post) for post in posts],
        pagination=PaginationResponse.from_descriptor(descriptor),
    )


@posts_router.get("/{post_id}", response_model=GetPostResponse)
def get_post(
    post_id: str,
    viewer: Optional[UserRecord] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service),
):
    view = service.get_post(post_id, viewer.id if viewer else None)
    return GetPostResponse(
        post=PostResponse.from_record(
            view.post, is_owner=view.is_owner if viewer else None
        )
    )


@posts_router.post("", response_model=CreatedResponse, status_code=201)
async def create_post(
    title: str = Form(...),
    body: str = Form(...),
    images: Optional[list[UploadFile]] = File(None),
    author: UserRecord = Depends(can_write_posts),
    service: PostService = Depends(get_post_service),
    storage: StorageClient = Depends(get_storage_client),
):
    uploads = images or []
    if len(uploads) > service.max_images:
        raise HTTPException(
            status_code=400,
            detail=f"A post can have at most {service.max_images} images",
        )
    try:
        payload = PostPayload(title=title, body=body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    settings = get_settings()
    raw_images = [await upload.read() for upload in uploads]
    image_paths = store_post_images(
        raw_images,
        storage,
        max_edge=settings.image_max_edge,
        quality=settings.image_quality,
    )
    try:
        post_id = service.create_post(image_paths, payload.to_content(), author)
    except Exception:
        for path in image_paths:
            try:
                storage.delete(path)
            except Exception:
                logger.warning("Could not remove orphaned image %s", path, exc_info=True)
        raise
    return CreatedResponse(id=post_id)


@posts_router.patch("/{post_id}", response_model=EmptyResponse)
def update_post(
    post_id: str,
    payload: PostPayload,
    actor: UserRecord = Depends(can_write_posts),
    service: PostService = Depends(get_post_service),
):
    service.update_post(post_id, payload.to_content(), actor)
    return EmptyResponse()


@posts_router.delete("/{post_id}", response_model=EmptyResponse)
def delete_post(
    post_id: str,
    actor: UserRecord = Depends(can_write_posts),
    service: PostService = Depends(get_post_service),
):
    service.delete_post(post_id, actor)
    return EmptyResponse()


@stores_router.get("/stores", response_model=list[StoreResponse])
def list_stores(db: DbClient = Depends(get_db_client)):
    return [StoreResponse.from_store(store) for store in db.list_stores()]


@stores_router.get("/stores/{store_id}", response_model=StoreResponse)
def get_store(store_id: int, db: DbClient = Depends(get_db_client)):
    store = db.get_store(store_id)
    if store is None:
        raise StoreNotFoundError()
    return StoreResponse.from_store(store)


@auth_router.post("/signup", response_model=CreatedResponse, status_code=201)
def signup(payload: CredentialsRequest, db: DbClient = Depends(get_db_client)):
    user = db.create_user(payload.username, hash_password(payload.password), Role.USER)
    logger.info("User %s signed up", user.id)
    return CreatedResponse(id=user.id)


@auth_router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: DbClient = Depends(get_db_client)):
    user = db.get_user_by_username(payload.username)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=create_access_token(user))


@auth_router.get("/me", response_model=UserResponse)
def me(user: UserRecord = Depends(get_current_user)):
    return UserResponse.from_record(user)
