import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas

logger = logging.getLogger(__name__)

# Identifiers are stored as signed 32-bit integers.
MAX_ID = 2**31 - 1


class StoreError(RuntimeError):
    """Raised when the database rejects a read or a write."""


class NotFoundError(LookupError):
    """Raised when a referenced row does not exist."""

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


def parse_id(raw: str) -> Optional[int]:
    """Coerce an identifier taken from a URL path.

    Returns None for anything that is not a plain integer in the column
    range, so callers can decide whether that means "bad request" or
    "not found".
    """
    digits = raw[1:] if raw[:1] in ("+", "-") else raw
    # No surrounding whitespace, underscores or non-ASCII digits.
    if not digits.isascii() or not digits.isdigit():
        return None
    parsed = int(raw)
    if not -MAX_ID - 1 <= parsed <= MAX_ID:
        return None
    return parsed


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        # Re-raise a simplified error for the API layer to handle.
        raise StoreError(f"Database commit failed while {action}") from exc


# User CRUD


def get_users(db: Session) -> List[models.User]:
    """Return every user with its posts and each post's tags."""
    stmt = (
        select(models.User)
        .options(
            selectinload(models.User.posts).selectinload(models.Post.tags),
        )
        .order_by(models.User.id)
    )
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        raise StoreError("Database read failed while listing users") from exc


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    stmt = (
        select(models.User)
        .options(
            selectinload(models.User.posts).selectinload(models.Post.tags),
        )
        .where(models.User.id == user_id)
    )
    try:
        return db.execute(stmt).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise StoreError("Database read failed while loading a user") from exc


def create_user(db: Session, user_in: schemas.UserCreate) -> models.User:
    """Insert a user.

    A duplicate email is rejected by the unique index and surfaces as a
    StoreError like any other commit failure.
    """
    user = models.User(name=user_in.name, email=user_in.email)
    db.add(user)
    _commit(db, "creating a user")
    db.refresh(user)
    logger.info("Created user id=%s", user.id)
    return user


# Post CRUD


def create_post(db: Session, user_id: int, post_in: schemas.PostCreate) -> models.Post:
    """Insert a post owned by `user_id`.

    The owner is not looked up first; a store enforcing the foreign key
    rejects unknown owners at commit time.
    """
    post = models.Post(
        user_id=user_id,
        title=post_in.title,
        body=post_in.body,
    )
    db.add(post)
    _commit(db, "creating a post")
    db.refresh(post)
    logger.info("Created post id=%s for user id=%s", post.id, user_id)
    return post


# Tag CRUD


def get_tags(db: Session) -> List[models.Tag]:
    """Return every tag with its posts, one level deep."""
    stmt = (
        select(models.Tag)
        .options(selectinload(models.Tag.posts))
        .order_by(models.Tag.id)
    )
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        raise StoreError("Database read failed while listing tags") from exc


def create_tag(db: Session, tag_in: schemas.TagCreate) -> models.Tag:
    tag = models.Tag(name=tag_in.name)
    db.add(tag)
    _commit(db, "creating a tag")
    db.refresh(tag)
    logger.info("Created tag id=%s", tag.id)
    return tag


def is_tag_on_post(db: Session, post_id: int, tag_id: int) -> bool:
    stmt = select(models.post_tags.c.post_id).where(
        models.post_tags.c.post_id == post_id,
        models.post_tags.c.tag_id == tag_id,
    )
    return db.execute(stmt).first() is not None


def add_tag_to_post(db: Session, post_id: int, tag_id: int) -> bool:
    """Attach an existing tag to an existing post.

    Both lookups and the join-row insert run in the session's single
    transaction. Returns True when a new association was written and
    False when the pair was already linked.

    Raises:
        NotFoundError: if the post or the tag does not exist.
        StoreError: if the database fails.
    """
    try:
        post = db.get(models.Post, post_id)
        if post is None:
            raise NotFoundError("Post")
        tag = db.get(models.Tag, tag_id)
        if tag is None:
            raise NotFoundError("Tag")

        if tag in post.tags:
            return False
        post.tags.append(tag)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Another request linked the same pair between our check and commit.
        try:
            linked = is_tag_on_post(db, post_id, tag_id)
        except SQLAlchemyError as read_exc:
            raise StoreError("Database read failed while checking a post tag") from read_exc
        if linked:
            return False
        raise StoreError("Database commit failed while tagging a post") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError("Database commit failed while tagging a post") from exc

    logger.info("Tagged post id=%s with tag id=%s", post_id, tag_id)
    return True
