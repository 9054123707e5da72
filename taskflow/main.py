# taskflow/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging

from taskflow.api.category import router as category_router
from taskflow.api.task import router as task_router

from taskflow.core.settings import settings
from taskflow.database import engine
from taskflow.models.base import Base
import taskflow.models
from taskflow.core.exceptions import (
    BaseAppException,
    CircularReference,
    DepthLimitExceeded,
    InvalidArgument,
    InvalidCategory,
    NotFoundError,
    QuotaExceeded,
    StoreError,
    ValidationError,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="TaskFlow API",
    version="1.0.0",
    description="Per-user hierarchical task management",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(category_router)
app.include_router(task_router)

@app.get("/", tags=["Health"])
def root():
    return {"status": "TaskFlow API is running!"}

@app.get("/health", tags=["Health"])
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    logger.info("Starting TaskFlow API")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Stopping TaskFlow API")

# Engine errors -> HTTP

_ERROR_CODES = {
    InvalidArgument: "invalid_argument",
    InvalidCategory: "invalid_category",
    DepthLimitExceeded: "depth_limit_exceeded",
    CircularReference: "circular_reference",
}

def _error(status_code: int, code: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})

@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    return _error(404, "not_found", exc)

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return _error(400, _ERROR_CODES.get(type(exc), "validation_error"), exc)

@app.exception_handler(QuotaExceeded)
async def quota_exception_handler(request: Request, exc: QuotaExceeded):
    return _error(409, "quota_exceeded", exc)

@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return _error(500, "store_error", exc)

@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    logger.error(f"Unhandled application error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error(500, "internal_error", exc)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "taskflow.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
