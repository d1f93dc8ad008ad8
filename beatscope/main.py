"""FastAPI application - serves the analysis API."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beatscope.api.bands import router as bands_router
from beatscope.api.websocket import router as ws_router

app = FastAPI(title="Beatscope", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bands_router, prefix="/api")
app.include_router(ws_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    from beatscope.config import settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "beatscope.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
