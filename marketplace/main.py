import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from marketplace.config import settings
from marketplace.database import get_engine
from marketplace.infrastructure.db_schema import metadata
from marketplace.presentation.api import router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    # tables are normally managed by alembic; this only fills in what is missing
    async with get_engine().begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Order tables ready")

    yield

    logger.info("Shutting down...")
    await get_engine().dispose()


app = FastAPI(
    title="Marketplace Order Service",
    description="Order lifecycle with role-scoped approval and fulfillment",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Marketplace Order Service is running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
