import argparse
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config, CONFIG_DIR
from logging_config import configure_logging, get_logger
from routes import flashcards, review, stats  # Import routers
from utils.sm2 import InvalidGradeError, InvalidStateError
from utils.store import CardNotFoundError, StaleCardError

logger = get_logger("lecturelens")

# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init config, logging and DB
    config = load_config()  # Ensures config exists
    configure_logging(config["logging"]["level"])
    init_db()
    logger.info("Review database ready in %s", CONFIG_DIR)
    yield

app = FastAPI(
    title="LectureLens Review",
    description="Spaced-repetition scheduling for lecture flashcards",
    lifespan=lifespan,
)

# Include routers
app.include_router(flashcards.router, prefix="/flashcards", tags=["flashcards"])
app.include_router(review.router, prefix="/review", tags=["review"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])

@app.exception_handler(InvalidGradeError)
async def invalid_grade_handler(request: Request, exc: InvalidGradeError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

@app.exception_handler(InvalidStateError)
async def invalid_state_handler(request: Request, exc: InvalidStateError):
    # Corrupt stored state is an internal error, not a failed review
    logger.error("Scheduling state invariant violated for card %s: %s", exc.card_id, exc.reason)
    return JSONResponse(status_code=500, content={"detail": "Internal error while scheduling review"})

@app.exception_handler(CardNotFoundError)
async def card_not_found_handler(request: Request, exc: CardNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Flashcard not found"})

@app.exception_handler(StaleCardError)
async def stale_card_handler(request: Request, exc: StaleCardError):
    return JSONResponse(
        status_code=409,
        content={"detail": "Flashcard was reviewed concurrently; reload and try again"},
    )

@app.get("/")
async def home():
    return {"service": "lecturelens-review", "status": "ok"}

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LectureLens review service")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    args = parser.parse_args()
    config = load_config()  # Ensures config is copied if missing
    if args.init:
        init_db()
        print(f"DB initialized and config copied to {CONFIG_DIR}/")
        exit(0)
    # Run server
    server = config["server"]
    uvicorn.run(
        "main:app",
        host=server["host"],
        port=server["port"],
        reload=args.dev,
        log_level=config["logging"]["level"].lower(),
    )
