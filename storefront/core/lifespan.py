# storefront/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from storefront.db import mongo, redis as r
from storefront.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is required when a URI is configured
    if settings.MONGO_URI:
        try:
            await mongo.connect()
            logger.info("Mongo connected db=%s", settings.MONGO_DB)
        except Exception as e:
            logger.error("Mongo connection failed: %s", e)
            raise
    else:
        logger.warning("No MONGO_URI provided, catalog will serve the fallback dataset")

    # Redis is optional, carts use process memory without it
    if settings.REDIS_URL:
        try:
            await r.connect()
        except Exception as e:
            logger.warning("Redis connection failed (ignored): %s", e)
    else:
        logger.warning("No REDIS_URL provided, carts are kept in process memory")

    yield

    # --- Shutdown ---
    if settings.REDIS_URL:
        try:
            await r.disconnect()
        except Exception as e:
            logger.warning("Redis disconnect failed: %s", e)

    if settings.MONGO_URI:
        try:
            await mongo.disconnect()
            logger.info("Mongo disconnected")
        except Exception as e:
            logger.warning("Mongo disconnect failed: %s", e)
