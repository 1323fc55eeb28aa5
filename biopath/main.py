from fastapi import FastAPI
import logging

from biopath.api.routes import router
from biopath.assets.singleton import init_reference_data

app = FastAPI(title="biopath", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    ref = init_reference_data()
    logger.info("reference data loaded: %d stages, %d cards", len(ref.stages), len(ref.cards))


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "biopath", "version": "0.1.0"}
