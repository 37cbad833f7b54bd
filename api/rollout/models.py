from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

ALL_GROUP = "all"

@dataclass
class Feature:
    name: str
    percentage: Decimal = Decimal(0)
    groups: List[str] = field(default_factory=list)
    users: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "percentage": str(self.percentage),
            "groups": list(self.groups),
            "users": list(self.users),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Feature":
        return cls(
            name=data["name"],
            percentage=Decimal(str(data.get("percentage", 0))),
            groups=list(data.get("groups") or []),
            users=list(data.get("users") or []),
        )
