"""Post lifecycle.

A post is either Hidden (is_hidden=True) or Published (is_hidden=False).
publish and hide only move between the two states; asking for the state a
post is already in is an error, not a no-op.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import RequestContext, load_owned_post
from errors import bad_request, not_found
from models import Post

logger = logging.getLogger(__name__)


def _commit(db: Session):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def create_post(db: Session, ctx: RequestContext, title: str, content: str, hidden: bool = False) -> Post:
    db_post = Post(title=title, content=content, author_id=ctx.caller_id, is_hidden=hidden)
    db.add(db_post)
    _commit(db)
    db.refresh(db_post)

    logger.info("Post %s created by user %s", db_post.id, ctx.caller_id)
    return db_post


def list_public_posts(db: Session):
    posts = db.query(Post).filter(Post.is_hidden.is_(False)).order_by(Post.id).all()
    return [{"title": p.title, "content": p.content} for p in posts]


def list_my_posts(db: Session, ctx: RequestContext):
    posts = db.query(Post).filter(Post.author_id == ctx.caller_id).order_by(Post.id).all()
    return [{"title": p.title, "content": p.content, "is_hidden": p.is_hidden} for p in posts]


def update_post(db: Session, ctx: RequestContext, post_id: int, title: str, content: str) -> Post:
    post = load_owned_post(db, post_id, ctx, "YOU_CAN'T_EDIT_THIS_POST", missing=not_found)

    post.title = title
    post.content = content
    _commit(db)

    logger.info("Post %s edited", post_id)
    return post


def delete_post(db: Session, ctx: RequestContext, post_id: int) -> None:
    post = load_owned_post(db, post_id, ctx, "YOU_CAN'T_DELETE_THIS_POST")

    db.delete(post)
    _commit(db)

    logger.info("Post %s deleted", post_id)


def publish_post(db: Session, ctx: RequestContext, post_id: int) -> Post:
    post = load_owned_post(db, post_id, ctx, "YOU_CAN'T_PUBLISH_THIS_POST")
    if not post.is_hidden:
        raise bad_request("ALREADY_PUBLISHED")

    post.is_hidden = False
    _commit(db)

    logger.info("Post %s published", post_id)
    return post


def hide_post(db: Session, ctx: RequestContext, post_id: int) -> Post:
    post = load_owned_post(db, post_id, ctx, "YOU_CAN'T_HIDE_THIS_POST")
    if post.is_hidden:
        raise bad_request("ALREADY_HIDDEN")

    post.is_hidden = True
    _commit(db)

    logger.info("Post %s hidden", post_id)
    return post
