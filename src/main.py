from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.trains import router as trains_router
from src.domain.exceptions import ScheduleError, ScheduleUnavailable

app = FastAPI(title="LiveTrains")
app.include_router(trains_router)


@app.exception_handler(ScheduleUnavailable)
async def schedule_unavailable_handler(
    request: Request, exc: ScheduleUnavailable
) -> JSONResponse:
    logging.getLogger("uvicorn.error").warning(
        "Schedule unavailable: %s", exc, extra={"path": str(request.url.path)}
    )
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so the map frontend can display them."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRANSIT_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (ScheduleError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
