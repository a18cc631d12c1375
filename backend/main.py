import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database import init_db
from routes.scheduled_event import router as scheduled_event_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("[Startup] scheduled_events table ready")
    yield


app = FastAPI(lifespan=lifespan)
WEB_ORIGIN = os.getenv("WEB_ORIGIN", "")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        WEB_ORIGIN
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scheduled_event_router)


@app.get("/health")
def health():
    return {"ok": True}
