import abc
import logging
from decimal import Decimal
from typing import List, Optional

from rollout.models import ALL_GROUP, Feature
from rollout.services.bucketing import BucketingProvider
from rollout.storage import FeatureStorage

logger = logging.getLogger(__name__)


class FeatureManagerInterface(abc.ABC):
    @abc.abstractmethod
    async def set_percentage(self, feature_name: str, percentage) -> None: ...

    @abc.abstractmethod
    async def set_groups(self, feature_name: str, groups: List[str]) -> None: ...

    @abc.abstractmethod
    async def remove_groups(self, feature_name: str, groups: List[str]) -> None: ...

    @abc.abstractmethod
    async def set_users(self, feature_name: str, users: List[str]) -> None: ...

    @abc.abstractmethod
    async def remove_users(self, feature_name: str, users: List[str]) -> None: ...

    @abc.abstractmethod
    async def is_active_for(self, feature_name: str, user: Optional[str] = None, group: Optional[str] = None) -> bool: ...

    @abc.abstractmethod
    async def get_all_features(self) -> List[str]: ...

    @abc.abstractmethod
    async def deactivate(self, feature_name: str) -> None: ...


def _clamp(percentage) -> Decimal:
    value = Decimal(str(percentage))
    if value.is_nan():
        raise ValueError(f"percentage must be a number, got {percentage!r}")
    return max(min(value, Decimal(100)), Decimal(0))


def _union(existing: List[str], extra: List[str]) -> List[str]:
    return list(dict.fromkeys([*existing, *extra]))


def _without(existing: List[str], removed: List[str]) -> List[str]:
    removed = set(removed)
    return list(dict.fromkeys(item for item in existing if item not in removed))


class FeatureManager(FeatureManagerInterface):
    """Reads, mutates and evaluates features through a FeatureStorage.

    No state is kept between calls. Every mutation is a single read followed by at most
    one write, without locking, so concurrent writers to the same feature are
    last-write-wins. Empty names and empty lists are ignored.
    """

    def __init__(self, storage: FeatureStorage, bucketing: BucketingProvider):
        self._storage = storage
        self._bucketing = bucketing

    async def _get_or_create(self, feature_name: str) -> Feature:
        feature = await self._storage.get_feature(feature_name)
        return feature if feature is not None else Feature(feature_name)

    async def set_percentage(self, feature_name: str, percentage) -> None:
        if not feature_name:
            return
        percentage = _clamp(percentage)
        feature = await self._get_or_create(feature_name)
        feature.percentage = percentage
        await self._storage.store_feature(feature)
        logger.info("feature %s percentage set to %s", feature_name, feature.percentage)

    async def set_groups(self, feature_name: str, groups: List[str]) -> None:
        if not feature_name or not groups:
            return
        feature = await self._get_or_create(feature_name)
        feature.groups = _union(feature.groups, groups)
        await self._storage.store_feature(feature)
        logger.info("feature %s groups added: %s", feature_name, groups)

    async def remove_groups(self, feature_name: str, groups: List[str]) -> None:
        if not feature_name or not groups:
            return
        feature = await self._storage.get_feature(feature_name)
        if feature is None:
            logger.debug("remove_groups: feature %s not found", feature_name)
            return
        feature.groups = _without(feature.groups, groups)
        await self._storage.store_feature(feature)
        logger.info("feature %s groups removed: %s", feature_name, groups)

    async def set_users(self, feature_name: str, users: List[str]) -> None:
        if not feature_name or not users:
            return
        feature = await self._get_or_create(feature_name)
        feature.users = _union(feature.users, users)
        await self._storage.store_feature(feature)
        logger.info("feature %s users added: %d", feature_name, len(users))

    async def remove_users(self, feature_name: str, users: List[str]) -> None:
        if not feature_name or not users:
            return
        feature = await self._storage.get_feature(feature_name)
        if feature is None:
            logger.debug("remove_users: feature %s not found", feature_name)
            return
        feature.users = _without(feature.users, users)
        await self._storage.store_feature(feature)
        logger.info("feature %s users removed: %d", feature_name, len(users))

    async def is_active_for(self, feature_name: str, user: Optional[str] = None, group: Optional[str] = None) -> bool:
        if not feature_name:
            return False
        feature = await self._storage.get_feature(feature_name)
        if feature is None:
            return False
        if self._is_active_for_everyone(feature):
            return True
        return self._is_active_for_group(feature, group) or self._is_active_for_user(feature, user)

    @staticmethod
    def _is_active_for_everyone(feature: Feature) -> bool:
        return feature.percentage == 100 or ALL_GROUP in feature.groups

    @staticmethod
    def _is_active_for_group(feature: Feature, group: Optional[str]) -> bool:
        return bool(group) and group in feature.groups

    def _is_active_for_user(self, feature: Feature, user: Optional[str]) -> bool:
        if not user:
            return False
        return user in feature.users or self._bucketing.transform(user) < feature.percentage

    async def get_all_features(self) -> List[str]:
        raise NotImplementedError("get_all_features")

    async def deactivate(self, feature_name: str) -> None:
        raise NotImplementedError("deactivate")
