import argparse
import json
import logging
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from config import load_config
from db.database import BACKUP_DIR, init_db
from routes import submissions, problems, settings, stats, backups, messages  # Import routers
from utils.backup import DebouncedBackup, FileBackupSink, load_latest_backup
from utils.deps import to_http_error
from utils.engine import build_engine
from utils.errors import LeetCurveError

logger = logging.getLogger("leetcurve")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_engine_from_config(config: dict):
    backup = None
    if config["backup"]["enabled"]:
        backup = DebouncedBackup(
            FileBackupSink(BACKUP_DIR, keep=config["backup"]["keep"]),
            debounce_seconds=config["backup"]["debounce_seconds"],
        )
    engine = build_engine(config, backup=backup)
    if backup is not None and engine.restore_if_empty(load_latest_backup(BACKUP_DIR)):
        logger.info("Store was empty; restored from %s", BACKUP_DIR)
    return engine


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load config, init DB, build the engine
    config = load_config()
    setup_logging(config["logging"]["level"])
    app.state.engine = create_engine_from_config(config)
    yield
    # Shutdown: write any pending backup
    backup = app.state.engine.backup
    if backup is not None:
        backup.flush()


app = FastAPI(title="LeetCurve", description="Spaced review scheduling for solved coding problems", lifespan=lifespan)


@app.exception_handler(LeetCurveError)
async def leetcurve_error_handler(request: Request, exc: LeetCurveError):
    http_error = to_http_error(exc)
    return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})


# Include routers
app.include_router(submissions.router, prefix="/submissions", tags=["submissions"])
app.include_router(problems.router, prefix="/problems", tags=["problems"])
app.include_router(settings.router, prefix="/settings", tags=["settings"])
app.include_router(stats.router, tags=["stats"])  # /activity, /stats, /stages
app.include_router(backups.router, prefix="/admin", tags=["admin"])
app.include_router(messages.router, prefix="/messages", tags=["messages"])


@app.get("/")
async def home():
    return {"app": "LeetCurve", "docs": "/docs"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LeetCurve App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--export", metavar="PATH", help="Write a JSON snapshot of all data and exit")
    parser.add_argument("--import", dest="import_path", metavar="PATH", help="Replace all data with a JSON snapshot and exit")
    args = parser.parse_args()
    config = load_config()  # Ensures config is copied if missing
    setup_logging(config["logging"]["level"])
    if args.init:
        init_db()
        print("DB initialized and config copied to ~/.leetcurve/")
        exit(0)
    if args.export or args.import_path:
        engine = build_engine(config)
        if args.export:
            Path(args.export).write_text(json.dumps(engine.export_data(), ensure_ascii=False, indent=2), encoding="utf-8")
            print(f"Exported to {args.export}")
        else:
            try:
                count = engine.import_data(json.loads(Path(args.import_path).read_text(encoding="utf-8")))
            except (LeetCurveError, ValueError) as exc:
                print(f"Import failed: {exc}")
                exit(1)
            print(f"Imported {count} problems")
        exit(0)
    # Run server
    uvicorn.run(
        "main:app",
        host=config["server"]["host"],
        port=config["server"]["port"],
        reload=args.dev,
        log_level=config["logging"]["level"].lower(),
    )
