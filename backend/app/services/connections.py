"""Connection handles used by the health probes.

One SQLAlchemy engine, one Redis connection pool and one HTTP client are
opened at application startup and closed at shutdown. Creating them does not
connect; the first probe does.
"""

import logging
from dataclasses import dataclass

import httpx
import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ProbeResources:
    engine: AsyncEngine
    redis: redis.Redis
    http: httpx.AsyncClient

    @classmethod
    def open(cls, settings: Settings) -> "ProbeResources":
        engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )
        pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=10,
            socket_connect_timeout=settings.health_probe_timeout,
        )
        redis_client = redis.Redis(connection_pool=pool)
        http = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.health_probe_timeout),
            follow_redirects=True,
        )
        logger.info("Probe resources initialized")
        return cls(engine=engine, redis=redis_client, http=http)

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.redis.aclose()
        await self.redis.connection_pool.aclose()
        await self.engine.dispose()
        logger.info("Probe resources closed")
