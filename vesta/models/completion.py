"""Completion tracker models."""

from enum import Enum
from typing import Any, Callable, Optional
from pydantic import BaseModel, ConfigDict, Field

from vesta.models.listing import ListingView, PropertyType


class Importance(str, Enum):
    """Publish-blocking or quality-improving."""
    MANDATORY = "mandatory"
    NTH = "nth"


class FieldRule(BaseModel):
    """One entry of the completion rule table."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str = Field(..., description="Spanish user-facing label")
    field_path: str = Field(..., description="Key of the flattened listing record")
    importance: Importance
    category: str = Field(..., description="Card/module name")
    accessor: Callable[[ListingView], Any] = Field(..., exclude=True)
    validator: Callable[[Any, ListingView], bool] = Field(..., exclude=True)
    applicable_property_types: Optional[frozenset[PropertyType]] = Field(
        None,
        description="None applies to every property type"
    )

    def applies_to(self, property_type: Optional[str]) -> bool:
        """Rules without a restriction, or listings without a type, always apply."""
        if self.applicable_property_types is None or not property_type:
            return True
        return property_type in {t.value for t in self.applicable_property_types}

    def evaluate(self, listing: ListingView) -> bool:
        return self.validator(self.accessor(listing), listing)


class FieldStatus(BaseModel):
    """Serialisable rule outcome."""
    id: str
    label: str
    field_path: str
    importance: Importance
    category: str
    is_completed: bool


class ImportanceBucket(BaseModel):
    completed: list[FieldStatus] = Field(default_factory=list)
    pending: list[FieldStatus] = Field(default_factory=list)
    total: int = 0
    completed_count: int = 0


class CompletionResult(BaseModel):
    """Completion counts per importance plus the publish gate."""
    mandatory: ImportanceBucket = Field(default_factory=ImportanceBucket)
    nth: ImportanceBucket = Field(default_factory=ImportanceBucket)
    overall_percentage: int = 0
    overall_completed: int = 0
    overall_total: int = 0
    can_publish_to_portals: bool = False
