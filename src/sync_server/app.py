"""
Remote persistence service: stores the whole workspace document in one JSON file.

GET /api/data returns the document ({} when none exists yet); POST /api/data
replaces it wholesale. No auth, no partial updates.
"""
import json
import logging
import os
import tempfile
import time
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.shared.config import WorkspaceConfig
from src.shared.logging_config import configure_logging

DATA_DIR = Path(os.environ.get("TEAMSYNC_SERVER_DATA", "./server_data"))
DB_FILENAME = "db.json"
# Notes embed images as base64
MAX_BODY_BYTES = 50 * 1024 * 1024

log = logging.getLogger(__name__)

app = FastAPI(title="TeamSync Data Service", version="1.0.0")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _db_file() -> Path:
    return DATA_DIR / DB_FILENAME


def _write_atomic(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".db-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.get("/api/data")
async def read_data():
    db_file = _db_file()
    if not db_file.exists():
        return {}
    try:
        return json.loads(db_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log.error("Failed to read %s: %s", db_file, e)
        return JSONResponse({"error": "Failed to read data."}, status_code=500)


@app.post("/api/data")
async def write_data(request: Request):
    declared = int(request.headers.get("content-length") or 0)
    if declared > MAX_BODY_BYTES:
        return JSONResponse({"error": "Payload too large."}, status_code=413)

    raw = await request.body()
    if len(raw) > MAX_BODY_BYTES:
        return JSONResponse({"error": "Payload too large."}, status_code=413)
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"error": "Body must be JSON."}, status_code=400)
    if not isinstance(document, dict):
        return JSONResponse({"error": "Body must be a JSON object."}, status_code=400)

    if not document.get("lastUpdated"):
        document["lastUpdated"] = int(time.time() * 1000)

    try:
        _write_atomic(_db_file(), document)
    except OSError as e:
        log.error("Failed to write %s: %s", _db_file(), e)
        return JSONResponse({"error": "Failed to save data."}, status_code=500)

    log.info("Document saved (lastUpdated=%s)", document["lastUpdated"])
    return {"success": True, "timestamp": document["lastUpdated"]}


def main():
    configure_logging()
    config = WorkspaceConfig.from_env()
    log.info("Data stored in %s", _db_file().resolve())
    uvicorn.run(
        "src.sync_server.app:app",
        host="0.0.0.0",
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
