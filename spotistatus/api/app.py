"""FastAPI app and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure logging in the worker process so resolver INFO logs are visible under uvicorn
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from spotistatus.api.state import AppState, get_state
from spotistatus.core.kvstore import JsonFileKVStore
from spotistatus.api.routes import commands, spotify, status

__all__ = ["app", "AppState", "get_state"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    state = get_state()
    if isinstance(state.kv, JsonFileKVStore):
        removed = state.kv.purge_expired()
        logging.getLogger(__name__).info("KV store ready (%d expired entries purged)", removed)
    yield


app = FastAPI(
    title="Spotistatus API",
    description="Share what you are listening to on Spotify with other platform users",
    lifespan=lifespan,
)

app.include_router(spotify.router, tags=["spotify"])
app.include_router(status.router, prefix="/api/v1", tags=["status"])
app.include_router(commands.router, prefix="/api/v1/command", tags=["commands"])
