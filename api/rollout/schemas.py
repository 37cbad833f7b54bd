from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field

class PercentageUpdate(BaseModel):
    percentage: Decimal = Field(..., description="rollout percentage, clamped to 0..100")

class NamesPayload(BaseModel):
    items: List[str] = Field(default_factory=list, description="group or user names")

class ActivationResult(BaseModel):
    feature: str
    active: bool
