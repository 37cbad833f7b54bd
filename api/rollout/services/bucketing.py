import abc
import hashlib
from decimal import Decimal

def _stable_hash(value: str) -> Decimal:
    # 0.00..99.99
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()
    bucket = int(digest[:8], 16) % 10000
    return Decimal(bucket) / 100

class BucketingProvider(abc.ABC):
    """Maps an identifier to a deterministic value compared against a rollout percentage."""

    @abc.abstractmethod
    def transform(self, identifier: str) -> Decimal: ...

class HashBucketingProvider(BucketingProvider):
    def transform(self, identifier: str) -> Decimal:
        return _stable_hash(identifier)
