import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from event_explorer.core.errors import (
    DependencyFailureError,
    EventExplorerError,
    InvalidArgumentError,
    NotFoundError,
    StateConflictError,
)
from event_explorer.core.logging_config import setup_logging
from event_explorer.database.db import Base, engine
from event_explorer.models import categories, events, requests, users  # noqa: F401
from event_explorer.routes import admin, public
from event_explorer.routes import users as user_routes

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (NotFoundError, 404),
    (InvalidArgumentError, 400),
    (StateConflictError, 409),
    (DependencyFailureError, 503),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Create all tables (in production, use migrations such as Alembic)
    Base.metadata.create_all(bind=engine)
    logger.info("Event explorer started")
    yield


app = FastAPI(title="Event Explorer", lifespan=lifespan)

# Configure CORS
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EventExplorerError)
async def event_explorer_error_handler(request: Request, exc: EventExplorerError):
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"status": "ok"}


# Include the routers
app.include_router(admin.router)
app.include_router(user_routes.router)
app.include_router(public.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("event_explorer.main:app", host="0.0.0.0", port=8000)
