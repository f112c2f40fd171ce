"""
Database abstraction for SQL backends and an in-memory test implementation.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, Column, Float, Integer, String, Text, create_engine, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from postboard.errors import DuplicateUserError
from shared.types import Role, Store


class DbClient(Protocol):
    """Interface for database access."""

    def create_post(
        self, title: str, body: str, images: list[str], author_id: str
    ) -> "PostRecord":
        ...

    def get_post(self, post_id: str) -> Optional["PostRecord"]:
        ...

    def list_posts(self, limit: int, offset: int = 0) -> tuple[list["PostRecord"], int]:
        ...

    def update_post(self, post_id: str, *, title: str, body: str) -> bool:
        ...

    def delete_post(self, post_id: str) -> bool:
        ...

    def create_user(self, username: str, password_hash: str, role: Role) -> "UserRecord":
        ...

    def get_user(self, user_id: str) -> Optional["UserRecord"]:
        ...

    def get_user_by_username(self, username: str) -> Optional["UserRecord"]:
        ...

    def save_store(self, store: Store) -> None:
        ...

    def list_stores(self) -> list[Store]:
        ...

    def get_store(self, store_id: int) -> Optional[Store]:
        ...


@dataclass
class PostRecord:
    id: str
    title: str
    body: str
    author_id: str
    images: list[str] = field(default_factory=list)
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "images": list(self.images),
            "author_id": self.author_id,
            "created_at": self.created_at,
        }


@dataclass
class UserRecord:
    id: str
    username: str
    password_hash: str
    role: Role


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.posts: Dict[str, PostRecord] = {}
        self.users: Dict[str, UserRecord] = {}
        self.stores: Dict[int, Store] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.posts.clear()
        self.users.clear()
        self.stores.clear()

    def create_post(
        self, title: str, body: str, images: list[str], author_id: str
    ) -> PostRecord:
        record = PostRecord(
            id=str(uuid.uuid4()),
            title=title,
            body=body,
            images=list(images),
            author_id=author_id,
        )
        self.posts[record.id] = record
        return record

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        return self.posts.get(post_id)

    def list_posts(self, limit: int, offset: int = 0) -> tuple[list[PostRecord], int]:
        ordered = sorted(
            self.posts.values(), key=lambda post: post.created_at, reverse=True
        )
        return ordered[offset : offset + limit], len(ordered)

    def update_post(self, post_id: str, *, title: str, body: str) -> bool:
        post = self.posts.get(post_id)
        if not post:
            return False
        post.title = title
        post.body = body
        return True

    def delete_post(self, post_id: str) -> bool:
        return self.posts.pop(post_id, None) is not None

    def create_user(self, username: str, password_hash: str, role: Role) -> UserRecord:
        if self.get_user_by_username(username):
            raise DuplicateUserError()
        record = UserRecord(
            id=str(uuid.uuid4()),
            username=username,
            password_hash=password_hash,
            role=role,
        )
        self.users[record.id] = record
        return record

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.username == username:
                return user
        return None

    def save_store(self, store: Store) -> None:
        self.stores[store.id] = store

    def list_stores(self) -> list[Store]:
        return [self.stores[key] for key in sorted(self.stores)]

    def get_store(self, store_id: int) -> Optional[Store]:
        return self.stores.get(store_id)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        engine_options = {"future": True, "pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_options["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_options)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_post_record(self, row: "PostRow") -> PostRecord:
        return PostRecord(
            id=row.id,
            title=row.title,
            body=row.body,
            images=list(row.images or []),
            author_id=row.author_id,
            created_at=row.created_at,
        )

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            username=row.username,
            password_hash=row.password_hash,
            role=Role(row.role),
        )

    def create_post(
        self, title: str, body: str, images: list[str], author_id: str
    ) -> PostRecord:
        with self.Session() as session:
            row = PostRow(
                id=str(uuid.uuid4()),
                title=title,
                body=body,
                images=list(images),
                author_id=author_id,
                created_at=time.time(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_post_record(row)

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return None
            return self._to_post_record(row)

    def list_posts(self, limit: int, offset: int = 0) -> tuple[list[PostRecord], int]:
        with self.Session() as session:
            total = session.execute(select(func.count()).select_from(PostRow)).scalar_one()
            if offset >= total:
                # Past the last page; huge offsets would overflow the SQL integer type.
                return [], total
            stmt = (
                select(PostRow)
                .order_by(PostRow.created_at.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_post_record(row) for row in rows], total

    def update_post(self, post_id: str, *, title: str, body: str) -> bool:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return False
            row.title = title
            row.body = body
            session.commit()
            return True

    def delete_post(self, post_id: str) -> bool:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def create_user(self, username: str, password_hash: str, role: Role) -> UserRecord:
        with self.Session() as session:
            row = UserRow(
                id=str(uuid.uuid4()),
                username=username,
                password_hash=password_hash,
                role=role.value,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateUserError() from exc
            return self._to_user_record(row)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user_record(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).where(UserRow.username == username)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_user_record(row) if row else None

    def save_store(self, store: Store) -> None:
        with self.Session() as session:
            existing = session.get(StoreRow, store.id)
            if existing:
                existing.name = store.name
                existing.addr = store.addr
                existing.review = store.review
            else:
                session.add(
                    StoreRow(
                        id=store.id,
                        name=store.name,
                        addr=store.addr,
                        review=store.review,
                    )
                )
            session.commit()

    def list_stores(self) -> list[Store]:
        with self.Session() as session:
            rows = session.execute(select(StoreRow).order_by(StoreRow.id)).scalars().all()
            return [
                Store(id=row.id, name=row.name, addr=row.addr, review=row.review or "")
                for row in rows
            ]

    def get_store(self, store_id: int) -> Optional[Store]:
        with self.Session() as session:
            row = session.get(StoreRow, store_id)
            if not row:
                return None
            return Store(id=row.id, name=row.name, addr=row.addr, review=row.review or "")


Base = declarative_base()


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    author_id = Column(String(36), nullable=False, index=True)
    created_at = Column(Float, nullable=False, index=True)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.USER.value)


class StoreRow(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    addr = Column(String, nullable=False)
    review = Column(Text, nullable=True)
