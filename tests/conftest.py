from decimal import Decimal

import pytest

from rollout.services.bucketing import BucketingProvider
from rollout.services.feature_manager import FeatureManager
from rollout.storage import InMemoryFeatureStorage


class RecordingStorage(InMemoryFeatureStorage):
    def __init__(self):
        super().__init__()
        self.reads = 0
        self.writes = 0

    async def get_feature(self, name):
        self.reads += 1
        return await super().get_feature(name)

    async def store_feature(self, feature):
        self.writes += 1
        await super().store_feature(feature)


class FixedBucketing(BucketingProvider):
    def __init__(self, values=None, default=Decimal(50)):
        self.values = values or {}
        self.default = default

    def transform(self, identifier):
        return self.values.get(identifier, self.default)


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def bucketing():
    return FixedBucketing()


@pytest.fixture
def manager(storage, bucketing):
    return FeatureManager(storage, bucketing)
