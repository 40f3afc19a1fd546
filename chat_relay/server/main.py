"""FastAPI application entrypoint for the chat relay server."""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import messages, participants
from .config import HOST, PORT, REAPER_ENABLED
from .database import Base, engine
from .errors import register_error_handlers
from .logging_config import configure_logging
from .reaper import Reaper

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    Base.metadata.create_all(bind=engine)
    reaper = Reaper() if REAPER_ENABLED else None
    if reaper:
        reaper.start()
    try:
        yield
    finally:
        if reaper:
            reaper.stop(timeout=5)


app = FastAPI(title="Chat Relay Server", version="1.0.0", lifespan=lifespan)
app.include_router(participants.router)
app.include_router(participants.status_router)
app.include_router(messages.router)
register_error_handlers(app)


@app.get("/")
def root():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run("chat_relay.server.main:app", host=HOST, port=PORT, reload=False)


if __name__ == "__main__":
    run()
