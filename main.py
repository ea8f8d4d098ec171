import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file before the database is configured
load_dotenv()

from fastapi import FastAPI  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from issue_tracker.database.config import engine, Base  # noqa: E402
from issue_tracker.middleware.timing import timing_middleware  # noqa: E402
from issue_tracker.routes.issues import router as issues_router  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    # Shutdown: Dispose of the engine
    await engine.dispose()

app = FastAPI(title="Issue Tracker", lifespan=lifespan)

app.middleware("http")(timing_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
        if origin.strip()
    ],
    allow_methods=["*"],
    allow_headers=["*"],
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(levelname)s | %(name)s | %(message)s",
)

app.include_router(issues_router)
