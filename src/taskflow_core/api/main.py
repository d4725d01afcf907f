"""TaskFlow Core FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..config import get_settings
from ..database import init_db
from ..errors import (
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    UnknownActionError,
    ValidationError,
)
from .routers import activities, dashboard, issues, projects, search, tasks, users

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("taskflow-core")

logger.info("Starting TaskFlow Core API")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables on startup when configured to (Alembic owns production schemas)."""
    if settings.create_tables_on_startup:
        logger.info("Initializing database...")
        init_db()
    yield

# Create FastAPI app
app = FastAPI(
    title="TaskFlow Core API",
    description="Projects, tasks and issues with role-based access and an activity feed",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(_request: Request, exc: PermissionDeniedError):
    return JSONResponse(
        status_code=403,
        content={"detail": str(exc), "role": exc.role, "action": exc.action},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(_request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(_request: Request, exc: ValidationError):
    content = {"detail": str(exc)}
    if exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        errors[key] = error["msg"]
    logger.info(f"Request validation error {errors}")
    return JSONResponse(status_code=400, content=jsonable_encoder({"detail": "Invalid request", "errors": errors}))


@app.exception_handler(StoreError)
async def store_error_handler(_request: Request, exc: StoreError):
    logger.error(f"Store failure: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Data store unavailable"})


@app.exception_handler(UnknownActionError)
async def unknown_action_handler(_request: Request, exc: UnknownActionError):
    logger.error(f"Permission check on unknown action: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal authorization error"})


# Include all routers with /api/v1 prefix
app.include_router(projects.router, prefix="/api/v1/projects")
app.include_router(tasks.router, prefix="/api/v1/tasks")
app.include_router(issues.router, prefix="/api/v1/issues")
app.include_router(activities.router, prefix="/api/v1/activities")
app.include_router(users.router, prefix="/api/v1/users")
app.include_router(dashboard.router, prefix="/api/v1/dashboard")
app.include_router(search.router, prefix="/api/v1/search")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "TaskFlow Core API",
        "version": "1.0.0",
        "authentication": "X-User-Id header",
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def run():
    """Run the API with uvicorn (``taskflow-api`` console script)."""
    import uvicorn

    uvicorn.run("taskflow_core.api.main:app", host="0.0.0.0", port=8000)
