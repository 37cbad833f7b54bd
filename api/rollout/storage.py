import abc
import copy
import json
import logging
from typing import Dict, Optional

from redis import asyncio as aioredis
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from rollout import config
from rollout.database import init_schema, make_engine, make_session_factory
from rollout.models import Feature

logger = logging.getLogger(__name__)

CHANNEL = "flag_updates"


class FeatureStorage(abc.ABC):
    """Async key-value store of features keyed by name."""

    @abc.abstractmethod
    async def get_feature(self, name: str) -> Optional[Feature]: ...

    @abc.abstractmethod
    async def store_feature(self, feature: Feature) -> None: ...

    async def close(self) -> None:
        """Release connections held by the store."""


class InMemoryFeatureStorage(FeatureStorage):
    def __init__(self):
        self._features: Dict[str, Feature] = {}

    async def get_feature(self, name: str) -> Optional[Feature]:
        feature = self._features.get(name)
        return copy.deepcopy(feature) if feature is not None else None

    async def store_feature(self, feature: Feature) -> None:
        self._features[feature.name] = copy.deepcopy(feature)


class RedisFeatureStorage(FeatureStorage):
    """Stores features as JSON under ``feature:<name>`` and announces writes on CHANNEL."""

    def __init__(self, client):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisFeatureStorage":
        return cls(aioredis.Redis.from_url(url, decode_responses=True))

    async def get_feature(self, name: str) -> Optional[Feature]:
        data = await self._redis.get(f"feature:{name}")
        if not data:
            return None
        return Feature.from_dict(json.loads(data))

    async def store_feature(self, feature: Feature) -> None:
        await self._redis.set(f"feature:{feature.name}", json.dumps(feature.to_dict()))
        await self._redis.publish(CHANNEL, feature.name)

    async def close(self) -> None:
        await self._redis.aclose()


class SqlFeatureStorage(FeatureStorage):
    def __init__(self, session_factory: sessionmaker, engine: Optional[Engine] = None):
        self._session_factory = session_factory
        self._engine = engine

    def _get(self, name: str) -> Optional[Feature]:
        with self._session_factory() as db:
            row = db.execute(
                text("SELECT name, percentage, group_names, user_names FROM rollout_features WHERE name=:n"),
                {"n": name},
            ).fetchone()
        if not row:
            return None
        return Feature.from_dict({
            "name": row[0],
            "percentage": row[1],
            "groups": json.loads(row[2] or "[]"),
            "users": json.loads(row[3] or "[]"),
        })

    def _store(self, feature: Feature):
        with self._session_factory() as db:
            db.execute(
                text("""INSERT INTO rollout_features (name, percentage, group_names, user_names)
                        VALUES (:name, :percentage, :groups, :users)
                        ON CONFLICT (name) DO UPDATE
                        SET percentage=excluded.percentage,
                            group_names=excluded.group_names,
                            user_names=excluded.user_names"""),
                {
                    "name": feature.name,
                    "percentage": str(feature.percentage),
                    "groups": json.dumps(feature.groups),
                    "users": json.dumps(feature.users),
                },
            )
            db.commit()

    async def get_feature(self, name: str) -> Optional[Feature]:
        return await run_in_threadpool(self._get, name)

    async def store_feature(self, feature: Feature) -> None:
        await run_in_threadpool(self._store, feature)

    async def close(self) -> None:
        if self._engine is not None:
            await run_in_threadpool(self._engine.dispose)


def build_feature_storage(backend: str = None) -> FeatureStorage:
    backend = backend or config.FEATURE_STORE
    logger.info("using %s feature store", backend)
    if backend == "memory":
        return InMemoryFeatureStorage()
    if backend == "redis":
        return RedisFeatureStorage.from_url(config.REDIS_URL)
    if backend == "sql":
        engine = make_engine()
        init_schema(engine)
        return SqlFeatureStorage(make_session_factory(engine), engine)
    raise ValueError(f"unknown feature store: {backend!r}")
