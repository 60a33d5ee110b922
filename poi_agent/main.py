import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from poi_agent.proximity import get_invocation_log, tool_text, top_listings_by_poi_proximity
from poi_agent.settings import Settings, load_settings
from poi_agent.tools import TOOL_REGISTRY


class TruncatingFormatter(logging.Formatter):
    """Formatter that truncates log messages to a maximum length."""

    def __init__(self, max_length: int = 200, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_length = max_length

    def format(self, record):
        formatted = super().format(record)
        if len(formatted) > self.max_length:
            formatted = formatted[:self.max_length] + "... (truncated)"
        return formatted


def configure_logging(settings: Settings) -> None:
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    # stdout may carry a tool transport, so console logs go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(TruncatingFormatter(max_length=300, fmt=log_format, datefmt=datefmt))
    handlers: list[logging.Handler] = [console_handler]

    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=datefmt))
        handlers.append(file_handler)

    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), handlers=handlers)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    yield


app = FastAPI(
    lifespan=lifespan,
    title="POI Proximity Agent",
    description="Ranks uploaded real-estate listings by distance to the nearest clinic or school",
    version="1.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class UploadedFile(BaseModel):
    path: str
    originalname: str
    mimetype: str = ""


class ProximityRequest(BaseModel):
    file: UploadedFile
    location: str = "Haifa"
    maxPrice: float = 2_000_000
    minRooms: float = 3
    poiType: Literal["clinic", "school", "both"] = "clinic"
    topN: int = Field(default=3, ge=1, le=20)


@app.get("/tools")
async def list_tools():
    return {"tools": list(TOOL_REGISTRY.values())}


@app.post("/tools/top-listings-by-poi-proximity")
async def top_listings(req: ProximityRequest):
    result = await top_listings_by_poi_proximity(
        file=req.file.model_dump(),
        location=req.location,
        max_price=req.maxPrice,
        min_rooms=req.minRooms,
        poi_type=req.poiType,
        top_n=req.topN,
        settings=settings,
    )
    return {
        "tool_result_id": result["tool_result_id"],
        "isError": not result["success"],
        "content": [{"type": "text", "text": tool_text(result)}],
    }


@app.get("/tools/log")
async def tools_log():
    """
    Returns the in-memory tool invocation log.
    Each entry: timestamp, location, poi_type, status, duration_ms, success.
    """
    log = get_invocation_log()
    total = len(log)
    successes = sum(1 for e in log if e["success"])
    return {
        "total_invocations": total,
        "success_count": successes,
        "failure_count": total - successes,
        "entries": log[-50:],
    }


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "api_key_configured": bool(settings.google_maps_api_key),
        "cache_dir": str(settings.cache_dir),
        "timestamp": datetime.utcnow().isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
