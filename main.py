import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Path, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

import posts
import users
from auth import RequestContext, get_request_context, require_admin
from config import load_config
from database import Base, SessionLocal, engine, get_db
from errors import ErrorKind, OperationError
from models import UserType

cfg = load_config()

logging.basicConfig(level=cfg.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)
if cfg.SQL_ECHO:
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        admin = users.bootstrap_admin_if_needed(db, cfg)
        if admin is not None:
            logger.info("Bootstrapped admin user id=%s", admin.id)
    finally:
        db.close()
    yield


app = FastAPI(
    title="Blog API",
    description="Users, posts and post visibility",
    version="1.0",
    lifespan=lifespan,
)

# largest value a BIGINT primary key can hold
MAX_ID = 2**63 - 1

PUBLIC_PATHS = {"/api/v1/users/login", "/api/v1/users/register"}


# ---- Swagger: bearer token on every protected route ----
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "TokenAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }

    for path in openapi_schema["paths"]:
        if path in PUBLIC_PATHS:
            continue
        for method in openapi_schema["paths"][path]:
            openapi_schema["paths"][path][method]["security"] = [{"TokenAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Error translation ----

@app.exception_handler(OperationError)
async def operation_error_handler(request, exc: OperationError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.code}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": "INVALID_REQUEST"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "INTERNAL_SERVER_ERROR"})


# Schemas
class RegisterSchema(BaseModel):
    name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    password: str


class CreateUserSchema(RegisterSchema):
    type: UserType


class LoginSchema(BaseModel):
    email: str = Field(max_length=255)
    password: str


class PostSchema(BaseModel):
    title: str = Field(max_length=255)
    content: str


# ------- USERS -------

@app.get("/api/v1/users")
def list_users(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return users.list_users(db, ctx.caller_role)


@app.post("/api/v1/users", status_code=204)
def create_user(
    user: CreateUserSchema,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    users.create_user(db, user.type, user.name, user.email, user.password)
    return Response(status_code=204)


@app.post("/api/v1/users/login")
def login(user: LoginSchema, db: Session = Depends(get_db)):
    token = users.login(db, user.email, user.password)
    return {"token": token}


@app.post("/api/v1/users/register", status_code=204)
def register(user: RegisterSchema, db: Session = Depends(get_db)):
    users.register(db, user.name, user.email, user.password)
    return Response(status_code=204)


@app.get("/api/v1/users/home")
def home(ctx: RequestContext = Depends(get_request_context)):
    return {"message": "Welcome on home page"}


# ------- POSTS -------

@app.get("/posts")
def list_public_posts(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return posts.list_public_posts(db)


@app.get("/posts/blogger")
def list_my_posts(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return posts.list_my_posts(db, ctx)


@app.post("/posts/blogger/newPost", status_code=204)
def new_post(
    post: PostSchema,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    posts.create_post(db, ctx, post.title, post.content, hidden=cfg.POSTS_HIDDEN_BY_DEFAULT)
    return Response(status_code=204)


@app.put("/posts/blogger/editPost/{post_id}")
def edit_post(
    post: PostSchema,
    post_id: int = Path(ge=1, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    posts.update_post(db, ctx, post_id, post.title, post.content)
    return Response(status_code=200)


@app.delete("/posts/blogger/deletePost/{post_id}")
def delete_post(
    post_id: int = Path(ge=1, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    posts.delete_post(db, ctx, post_id)
    return Response(status_code=200)


@app.put("/posts/blogger/publishPost/{post_id}")
def publish_post(
    post_id: int = Path(ge=1, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    posts.publish_post(db, ctx, post_id)
    return Response(status_code=200)


@app.put("/posts/blogger/hidePost/{post_id}")
def hide_post(
    post_id: int = Path(ge=1, le=MAX_ID),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    posts.hide_post(db, ctx, post_id)
    return Response(status_code=200)
