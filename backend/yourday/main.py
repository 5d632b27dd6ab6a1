import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.errors import ConflictError, NotFound, PersistenceError, Unauthenticated, ValidationError
from .core.logging_setup import setup_logging
from .db.session import init_db
from .schemas.tasks import ConflictBody, ConflictingTask
from .api.v1 import health, tasks

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    init_db()
    yield

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(tasks.router,  prefix=settings.API_PREFIX)

@app.exception_handler(ValidationError)
def on_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"message": exc.message, "field": exc.field})

@app.exception_handler(RequestValidationError)
def on_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    # a JSON decode error is located at ("body", <offset>), which names no field
    field = loc[-1] if len(loc) > 1 and loc[0] in ("body", "query") and isinstance(loc[-1], str) else None
    return JSONResponse(
        status_code=400,
        content={"message": first.get("msg", "Invalid request"), "field": field},
    )

@app.exception_handler(ConflictError)
def on_conflict(request: Request, exc: ConflictError):
    body = ConflictBody(
        message=exc.message,
        conflicting_task=ConflictingTask(
            id=exc.blocking_task_id,
            title=exc.blocking_title,
            start_time=exc.blocking_start,
            end_time=exc.blocking_end,
        ),
    )
    return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True))

@app.exception_handler(NotFound)
def on_not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"message": exc.message})

@app.exception_handler(Unauthenticated)
def on_unauthenticated(request: Request, exc: Unauthenticated):
    return JSONResponse(
        status_code=401,
        content={"message": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )

@app.exception_handler(PersistenceError)
def on_persistence_error(request: Request, exc: PersistenceError):
    logger.error("%s %s failed in the store", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": exc.message})
