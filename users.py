import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import auth
from config import Config
from errors import bad_request, unauthorized
from models import User, UserType

logger = logging.getLogger(__name__)

# Verified against when the email is unknown, so both login failures cost one hash check
_DUMMY_PASSWORD_HASH = auth.hash_password("not-a-real-password")


def create_user(db: Session, type: UserType, name: str, email: str, password: str) -> User:
    """Create a user of any type, enforcing unique name and email.

    When a request collides on both, the name conflict is reported, even if
    the name and the email belong to two different existing users.
    """
    similar_users = db.query(User).filter(or_(User.name == name, User.email == email)).all()
    if any(u.name == name for u in similar_users):
        raise bad_request("NAME_ALREADY_USED")
    if any(u.email == email for u in similar_users):
        raise bad_request("EMAIL_ALREADY_USED")

    db_user = User(type=type, name=name, email=email, password_hash=auth.hash_password(password))
    db.add(db_user)

    try:
        db.commit()
        db.refresh(db_user)
    except IntegrityError:
        # lost a race with a concurrent registration
        db.rollback()
        raise bad_request("USER_ALREADY_EXISTS")

    logger.info("Created %s user id=%s", db_user.type.value, db_user.id)
    return db_user


def register(db: Session, name: str, email: str, password: str) -> User:
    return create_user(db, UserType.BLOGGER, name, email, password)


def login(db: Session, email: str, password: str) -> str:
    user = db.query(User).filter(User.email == email).first()
    password_hash = user.password_hash if user else _DUMMY_PASSWORD_HASH
    if not auth.verify_password(password, password_hash) or not user:
        logger.warning("Failed login attempt")
        raise unauthorized("EMAIL_OR_PASSWORD_INCORRECT")

    return auth.create_access_token(user.id)


def list_users(db: Session, caller_role: UserType):
    if caller_role == UserType.ADMIN:
        users = db.query(User).order_by(User.id).all()
        return [{"id": u.id, "name": u.name, "email": u.email} for u in users]

    users = db.query(User).filter(User.type != UserType.ADMIN).order_by(User.id).all()
    return [{"name": u.name, "email": u.email} for u in users]


def bootstrap_admin_if_needed(db: Session, cfg: Config):
    """Create the first admin when the users table is empty.

    Driven by ADMIN_BOOTSTRAP_NAME / _EMAIL / _PASSWORD; nothing happens
    unless all three are set.
    """
    if not (cfg.ADMIN_BOOTSTRAP_NAME and cfg.ADMIN_BOOTSTRAP_EMAIL and cfg.ADMIN_BOOTSTRAP_PASSWORD):
        return None

    if db.query(User).count() > 0:
        return None

    return create_user(
        db,
        UserType.ADMIN,
        cfg.ADMIN_BOOTSTRAP_NAME,
        cfg.ADMIN_BOOTSTRAP_EMAIL,
        cfg.ADMIN_BOOTSTRAP_PASSWORD,
    )
