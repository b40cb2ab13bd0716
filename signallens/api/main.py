"""FastAPI application entrypoint."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signallens.api.routes import classify, config, health

app = FastAPI(title="Signal Lens API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(config.router)
app.include_router(classify.router)


if __name__ == "__main__":
    uvicorn.run("signallens.api.main:app", host="0.0.0.0", port=8000, reload=True)
