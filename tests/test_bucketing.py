from decimal import Decimal

from rollout.services.bucketing import HashBucketingProvider


def test_transform_is_deterministic():
    provider = HashBucketingProvider()
    assert provider.transform("user-42") == provider.transform("user-42")


def test_transform_range():
    provider = HashBucketingProvider()
    for i in range(500):
        value = provider.transform(f"user-{i}")
        assert Decimal(0) <= value < Decimal(100)
        assert value == value.quantize(Decimal("0.01"))


def test_transform_spreads_users():
    provider = HashBucketingProvider()
    below = sum(1 for i in range(2000) if provider.transform(f"user-{i}") < 25)
    assert 400 < below < 600
