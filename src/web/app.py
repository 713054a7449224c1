"""
FastAPI application exposing the workspace document to the UI.
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.shared.errors import (
    CapacityExceeded,
    ImportValidationFailure,
    StorageWriteFailed,
    format_storage_error,
)
from src.shared.logging_config import configure_logging
from src.web import dependencies

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start change polling and periodic sync; stop them on shutdown."""
    runtime = dependencies.get_runtime()
    runtime.start()
    log.info("Workspace instance %s started", runtime.store.instance_id)
    try:
        yield
    finally:
        runtime.stop()
        dependencies.set_runtime(None)


app = FastAPI(title="TeamSync Workspace", version="1.5.0", lifespan=lifespan)


@app.exception_handler(CapacityExceeded)
async def capacity_exceeded_handler(request: Request, exc: CapacityExceeded):
    return JSONResponse({"error": format_storage_error(exc)}, status_code=507)


@app.exception_handler(StorageWriteFailed)
async def storage_write_failed_handler(request: Request, exc: StorageWriteFailed):
    return JSONResponse({"error": format_storage_error(exc)}, status_code=500)


@app.exception_handler(ImportValidationFailure)
async def import_failed_handler(request: Request, exc: ImportValidationFailure):
    return JSONResponse({"error": format_storage_error(exc)}, status_code=400)


# Import and include routers
from src.web.routers import state, users, sync  # noqa: E402

app.include_router(state.router)
app.include_router(users.router)
app.include_router(sync.router)


@app.get("/")
async def index():
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/api/state")


def main():
    configure_logging()
    uvicorn.run(
        "src.web.app:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    main()
