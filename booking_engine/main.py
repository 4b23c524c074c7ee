from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from booking_engine.api.routes import router as api_router
from booking_engine.core.config import get_settings
from booking_engine.core.logging import setup_logging
from booking_engine.services.db import init_db

settings = get_settings()
setup_logging(settings.logging.level)

app = FastAPI(title="Branch Appointment Engine", version="0.1.0")

app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    init_db()


if __name__ == "__main__":
    uvicorn.run("booking_engine.main:app", host=settings.host, port=settings.port)
