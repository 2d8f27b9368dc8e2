# ==========================================================
# Coordinate logging service
# In-memory, append-only log of rover coordinates behind a
# small FastAPI router mounted at /bot.
# ==========================================================

import argparse
import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Coordinate(BaseModel):
    """One recorded position; extra fields (heading, status, ...) are kept."""
    model_config = ConfigDict(extra="allow")

    x: float
    y: float


class CoordinateStore:
    """Append-only marker list. No dedup, no bounds."""

    def __init__(self):
        self.markers: List[Dict[str, Any]] = []

    def add(self, marker: Dict[str, Any]):
        self.markers.append(marker)

    def all(self) -> List[Dict[str, Any]]:
        return list(self.markers)

    def clear(self):
        self.markers = []


router = APIRouter(prefix="/bot")


def _store(request: Request) -> CoordinateStore:
    return request.app.state.coordinate_store


@router.get("/test")
async def test_api_endpoint():
    return {"status": "ok", "message": "Bot API is working"}


@router.get("/coordinates/get")
async def get_coordinates(request: Request):
    return _store(request).all()


@router.post("/coordinates/add", status_code=201)
async def record_coordinate(coordinate: Coordinate, request: Request):
    """Append one coordinate and echo it back."""
    marker = coordinate.model_dump()
    _store(request).add(marker)
    logger.debug("Recorded coordinate %s", marker)
    return {"message": "Coordinate recorded", "coordinate": marker}


async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Something broke!"})


def create_app(store: Optional[CoordinateStore] = None) -> FastAPI:
    app = FastAPI(title="Heat Seeker Coordinate Log")
    app.state.coordinate_store = store if store is not None else CoordinateStore()

    # Allow CORS for any dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(router)
    return app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the rover coordinate log service")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
