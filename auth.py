import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import load_config
from database import get_db
from errors import OperationError, bad_request, forbidden, unauthorized
from models import Post, User, UserType

logger = logging.getLogger(__name__)
cfg = load_config()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# Raw header value; the Bearer scheme is parsed by extract_user_id
auth_header = APIKeyHeader(name="Authorization", auto_error=False)


def hash_password(password: str):
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognized hash format
        return False


# ---- Tokens ----

def create_access_token(user_id: int, expires_delta: timedelta = None):
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=cfg.TOKEN_EXPIRE_DAYS))
    to_encode = {"sub": str(user_id), "iat": now, "exp": expire}
    return jwt.encode(to_encode, cfg.TOKEN_SECRET_KEY, algorithm=cfg.TOKEN_ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by `token`.

    Raises an UNAUTHORIZED OperationError for a bad signature, an expired
    token, or a payload without an integer subject.
    """
    try:
        payload = jwt.decode(token, cfg.TOKEN_SECRET_KEY, algorithms=[cfg.TOKEN_ALGORITHM])
    except ExpiredSignatureError:
        raise unauthorized("TOKEN_EXPIRED")
    except JWTError:
        raise unauthorized("TOKEN_INVALID")

    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise unauthorized("TOKEN_INVALID")


# ---- Identity extraction ----

def extract_user_id(authorization: Optional[str]) -> int:
    """Resolve a user id from an `Authorization: Bearer <token>` header value."""
    if not authorization or not authorization.strip():
        raise unauthorized("AUTH_MISSING")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise unauthorized("AUTH_MALFORMED")

    return decode_access_token(parts[1])


# ---- Policy gates ----

@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Passed explicitly to every authenticated handler."""

    caller_id: int
    caller_role: UserType

    @property
    def is_admin(self) -> bool:
        return self.caller_role == UserType.ADMIN


def get_request_context(
    authorization: Optional[str] = Depends(auth_header),
    db: Session = Depends(get_db),
) -> RequestContext:
    try:
        user_id = extract_user_id(authorization)
    except OperationError as exc:
        logger.info("Rejected credential: %s", exc.code)
        raise

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise unauthorized("USER_NOT_FOUND")

    return RequestContext(caller_id=user.id, caller_role=UserType(user.type))


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.is_admin:
        raise forbidden("ADMIN_ONLY")
    return ctx


def load_owned_post(db: Session, post_id: int, ctx: RequestContext, forbidden_code: str, missing=bad_request) -> Post:
    """Fetch a post the caller is allowed to modify.

    A missing post is reported with `missing` (bad_request or not_found)
    before any ownership comparison is made.
    """
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise missing("THIS_POST_DOES_NOT_EXISTS")

    if post.author_id != ctx.caller_id:
        raise forbidden(forbidden_code)

    return post
