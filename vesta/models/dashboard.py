"""Dashboard models: operations summary, urgent tasks and appointments."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, computed_field


class TrackSummary(BaseModel):
    """Status -> count mappings for one listing-type track."""
    prospects: dict[str, int] = Field(default_factory=dict, description="Prospects plus active listings")
    leads: dict[str, int] = Field(default_factory=dict)
    deals: dict[str, int] = Field(default_factory=dict)


class OperacionesSummary(BaseModel):
    """Two-track (sale/rent) KPI summary."""
    sale: TrackSummary = Field(default_factory=TrackSummary)
    rent: TrackSummary = Field(default_factory=TrackSummary)


class ProspectRef(BaseModel):
    kind: Literal["prospect"] = "prospect"
    id: int


class LeadRef(BaseModel):
    kind: Literal["lead"] = "lead"
    id: int


class DealRef(BaseModel):
    kind: Literal["deal"] = "deal"
    id: int


class ListingRef(BaseModel):
    kind: Literal["listing"] = "listing"
    id: int


class AppointmentRef(BaseModel):
    kind: Literal["appointment"] = "appointment"
    id: int


# A task points at exactly one entity
EntityRef = Annotated[
    Union[ProspectRef, LeadRef, DealRef, ListingRef, AppointmentRef],
    Field(discriminator="kind"),
]


class UrgentTask(BaseModel):
    """Incomplete task due inside the urgency window."""
    task_id: int
    description: str
    due_date: datetime
    entity: Optional[EntityRef] = Field(None, description="Entity the task belongs to")
    entity_name: str = Field(default="Unknown", description="Contact name or property address")
    days_until_due: int = Field(..., description="Monday-Friday dates in [today, due_date]")
    completed: bool = False

    @computed_field
    @property
    def entity_type(self) -> Optional[str]:
        return self.entity.kind if self.entity else None

    @computed_field
    @property
    def entity_id(self) -> Optional[int]:
        return self.entity.id if self.entity else None


class AppointmentStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"
    NO_SHOW = "NoShow"


class TodayAppointment(BaseModel):
    """Appointment in the today/tomorrow window."""
    appointment_id: int
    contact_name: str
    property_address: Optional[str] = None
    start_time: datetime
    end_time: datetime
    trip_time_minutes: Optional[int] = None
    status: AppointmentStatus
    appointment_type: str = Field(..., description="viewing, valuation, ...")
