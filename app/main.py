import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.cache import cache
from app.config import settings
from app.exceptions import AuthenticationError, ConduitError, NotFoundError, ProfileValidationError
from app.middleware import RequestLogMiddleware
from app.routers import articles, profiles, users

UNAUTHORIZED_BODY = {"errors": {"authorization": ["unauthorized"]}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await cache.connect()
    yield
    await cache.disconnect()


app = FastAPI(
    title="Conduit API",
    description="User accounts, profiles, follows and article bookmarks",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    # The failure kind stays in the logs; every caller sees the same 401.
    return JSONResponse(
        status_code=401,
        content=UNAUTHORIZED_BODY,
        headers={"WWW-Authenticate": "Token"},
    )


@app.exception_handler(ProfileValidationError)
async def profile_validation_error_handler(request: Request, exc: ProfileValidationError):
    return JSONResponse(status_code=exc.status_code, content={"errors": exc.errors})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"errors": {exc.resource: ["not found"]}})


@app.exception_handler(ConduitError)
async def conduit_error_handler(request: Request, exc: ConduitError):
    return JSONResponse(status_code=exc.status_code, content={"errors": {"body": [exc.message]}})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error["loc"] else "body"
        errors.setdefault(field, []).append(error["msg"])
    return JSONResponse(status_code=422, content={"errors": errors})


# Routers
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
