"""Operation pipeline models: cards, kanban columns and the status vocabulary."""

from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Literal, Optional
from pydantic import BaseModel, Field


class OperationType(str, Enum):
    """Entity types shown on the operations board."""
    PROSPECTS = "prospects"
    LEADS = "leads"
    DEALS = "deals"


class ProspectType(str, Enum):
    """Dual-type prospect discriminator."""
    SEARCH = "search"
    LISTING = "listing"


class ListingTypeFilter(str, Enum):
    """Listing-type track filter accepted by the board."""
    SALE = "sale"
    RENT = "rent"
    ALL = "all"

    @property
    def listing_type(self) -> Optional[str]:
        """Stored listing_type value for this filter, None for ALL."""
        return LISTING_TYPE_BY_FILTER[self]


LISTING_TYPE_BY_FILTER = MappingProxyType({
    ListingTypeFilter.SALE: "Sale",
    ListingTypeFilter.RENT: "Rent",
    ListingTypeFilter.ALL: None,
})

DEFAULT_LISTING_TYPE = "Sale"


# Status workflows
PROSPECT_STATUSES = (
    "En búsqueda",
    "En preparación",
    "Archivado",
    "Finalizado",
)

LISTING_PROSPECT_STATUSES = (
    "Información básica",
    "Valoración",
    "Hoja de encargo",
    "En búsqueda",
)

SEARCH_PROSPECT_STATUSES = (
    "Información básica",
    "En búsqueda",
)

LEAD_STATUSES = (
    "New",
    "Working",
    "Converted",
    "Disqualified",
)

DEAL_STATUSES = (
    "Offer",
    "UnderContract",
    "Closed",
    "Lost",
)

STATUSES_BY_OPERATION_TYPE = MappingProxyType({
    OperationType.PROSPECTS: PROSPECT_STATUSES,
    OperationType.LEADS: LEAD_STATUSES,
    OperationType.DEALS: DEAL_STATUSES,
})

PROSPECT_STATUSES_BY_TYPE = MappingProxyType({
    ProspectType.LISTING: LISTING_PROSPECT_STATUSES,
    ProspectType.SEARCH: SEARCH_PROSPECT_STATUSES,
})

STATUS_TRANSLATIONS = MappingProxyType({
    # Legacy prospect statuses
    "New": "En búsqueda",
    "Working": "En preparación",
    "Qualified": "Finalizado",
    "Archived": "Archivado",
    # Leads
    "Converted": "Convertido",
    "Disqualified": "Descalificado",
    # Deals
    "Offer": "Oferta",
    "UnderContract": "Bajo Contrato",
    "Closed": "Cerrado",
    "Lost": "Perdido",
})


def get_statuses_for_operation_type(
    operation_type: OperationType,
    prospect_type: Optional[ProspectType] = None
) -> tuple[str, ...]:
    """Ordered valid statuses for an operation type."""
    if operation_type == OperationType.PROSPECTS and prospect_type is not None:
        return PROSPECT_STATUSES_BY_TYPE[prospect_type]
    return STATUSES_BY_OPERATION_TYPE[operation_type]


def get_translated_status(status: str) -> str:
    """Spanish display label for a status; unknown statuses pass through."""
    return STATUS_TRANSLATIONS.get(status, status)


def is_valid_status_transition(
    operation_type: OperationType,
    from_status: str,
    to_status: str,
    prospect_type: Optional[ProspectType] = None
) -> bool:
    """Both ends of a move must belong to the operation type's workflow."""
    valid_statuses = get_statuses_for_operation_type(operation_type, prospect_type)
    return from_status in valid_statuses and to_status in valid_statuses


def is_valid_dual_prospect_status_transition(
    prospect_type: ProspectType,
    from_status: str,
    to_status: str
) -> tuple[bool, Optional[str]]:
    """
    Validate a move inside a dual-type prospect workflow.

    Only one step forward or one step back is allowed.
    Returns tuple of (valid, error_message).
    """
    valid_statuses = PROSPECT_STATUSES_BY_TYPE[prospect_type]

    if from_status not in valid_statuses or to_status not in valid_statuses:
        return False, f"Estado no válido para prospecto de tipo {prospect_type.value}"

    from_index = valid_statuses.index(from_status)
    to_index = valid_statuses.index(to_status)

    if abs(to_index - from_index) > 1:
        return False, "Solo se permite avanzar un estado o retroceder un estado"

    return True, None


class OperationFilters(BaseModel):
    """Filters accepted by the kanban and card queries."""
    listing_type: ListingTypeFilter = Field(default=ListingTypeFilter.ALL, description="sale, rent or all")
    status: Optional[str] = Field(None, description="Exact status match")
    search_query: Optional[str] = Field(None, description="Reserved; not applied yet")


class OperationCard(BaseModel):
    """Unified board projection of a prospect, lead or deal."""
    id: int = Field(..., description="Source entity primary key")
    type: Literal["prospect", "lead", "deal"]
    status: Optional[str] = Field(None, description="Workflow status; may be outside the vocabulary")
    listing_type: str = Field(default=DEFAULT_LISTING_TYPE, description="Sale or Rent")
    # Prospect
    contact_name: Optional[str] = None
    need_summary: Optional[str] = None
    urgency_level: Optional[int] = None
    last_activity: Optional[datetime] = None
    next_task: Optional[str] = None
    # Lead
    listing_address: Optional[str] = None
    source: Optional[str] = None
    # Deal
    amount: Optional[float] = None
    close_date: Optional[datetime] = None
    participants: Optional[list[str]] = None


class KanbanColumn(BaseModel):
    """One status column of the board."""
    id: str
    title: str
    status: str
    items: list[OperationCard] = Field(default_factory=list)
    item_count: int = 0


class KanbanData(BaseModel):
    """Board columns in workflow order plus the number of fetched cards."""
    columns: list[KanbanColumn] = Field(default_factory=list)
    total_count: int = 0


class OperationCounts(BaseModel):
    """Cards per listing-type track."""
    sale: int = 0
    rent: int = 0
    all: int = 0
