"""Listing models."""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Callable, Mapping, Optional
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)
from pydantic.alias_generators import to_camel

from vesta.utils.errors import ListingValidationError


class PropertyType(str, Enum):
    """Property types handled by the portals."""
    PISO = "piso"
    CASA = "casa"
    LOCAL = "local"
    SOLAR = "solar"
    GARAJE = "garaje"


def _only(kind: type) -> Callable[[Any], Any]:
    def keep(value: Any) -> Any:
        return value if isinstance(value, kind) else None
    return keep


def _or_none(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


# Form values are never rejected: anything of the wrong shape reads as unset
# and its rule stays pending. Flags count only when literally true, text only
# when it is a string; numbers keep pydantic's lax parsing ("3" -> 3).
Flag = Annotated[Optional[bool], BeforeValidator(_only(bool))]
Text = Annotated[Optional[str], BeforeValidator(_only(str))]
Count = Annotated[Optional[int], WrapValidator(_or_none)]
Amount = Annotated[Optional[Decimal], WrapValidator(_or_none)]


class ListingView(BaseModel):
    """
    Flattened listing + property record used by the completion tracker.

    Accepts the camelCase keys produced by the listing form as well as the
    snake_case column names. `image_count` is not a column; the caller
    supplies it from the property images.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    # Basic information
    price: Amount = Field(None, description="Asking price")
    listing_type: Text = Field(None, description="Sale, Rent, Transfer, ...")
    property_type: Text = Field(None, description="piso, casa, local, solar or garaje")
    property_subtype: Text = None
    title: Text = None
    description: Text = None
    short_description: Text = None
    cadastral_reference: Text = None
    new_construction: Flag = None
    brand_new: Flag = None
    vpo: Flag = None

    # Surfaces and rooms
    square_meter: Amount = None
    built_surface_area: Amount = None
    bedrooms: Count = None
    bathrooms: Amount = None
    year_built: Count = None
    last_renovation_year: Count = None
    conservation_status: Count = None
    building_floors: Count = None

    # Address
    street: Text = None
    address_details: Text = None
    city: Text = None
    province: Text = None
    municipality: Text = None
    neighborhood: Text = None
    postal_code: Text = None

    # Energy
    energy_certificate_status: Text = None
    energy_consumption_scale: Text = None
    emissions_scale: Text = None

    # Amenities
    has_elevator: Flag = None
    has_garage: Flag = None
    garage_type: Text = None
    garage_spaces: Count = None
    has_storage_room: Flag = None
    storage_room_size: Count = None
    has_heating: Flag = None
    heating_type: Text = None
    hot_water_type: Text = None
    air_conditioning_type: Text = None
    is_furnished: Flag = None
    furniture_quality: Text = None
    pets_allowed: Flag = None
    appliances_included: Flag = None

    # Orientation and views
    exterior: Flag = None
    bright: Flag = None
    orientation: Text = None
    views: Flag = None
    mountain_views: Flag = None
    sea_views: Flag = None
    beachfront: Flag = None

    # Building and security
    disabled_accessible: Flag = None
    video_intercom: Flag = None
    alarm: Flag = None
    security_door: Flag = None
    concierge_service: Flag = None
    security_guard: Flag = None
    satellite_dish: Flag = None
    double_glazing: Flag = None

    # Community
    gym: Flag = None
    sports_area: Flag = None
    children_area: Flag = None
    suite_bathroom: Flag = None
    nearby_public_transport: Flag = None
    community_pool: Flag = None
    private_pool: Flag = None
    tennis_court: Flag = None

    # Kitchen
    kitchen_type: Text = None
    open_kitchen: Flag = None
    french_kitchen: Flag = None
    furnished_kitchen: Flag = None
    pantry: Flag = None

    # Additional spaces
    pool: Flag = None
    garden: Flag = None
    terrace: Flag = None
    terrace_size: Count = None
    balcony_count: Count = None
    gallery_count: Count = None
    living_room_size: Count = None
    wine_cellar: Flag = None
    built_in_wardrobes: Flag = None

    # Materials
    main_floor_type: Text = None
    shutter_type: Text = None
    carpentry_type: Text = None
    window_type: Text = None

    # Luxury
    jacuzzi: Flag = None
    hydromassage: Flag = None
    home_automation: Flag = None
    laundry_room: Flag = None
    fireplace: Flag = None

    # Derived
    image_count: Count = Field(None, description="Active property images")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ListingView":
        """
        Build a view from a flattened key/value record.

        Raises:
            ListingValidationError: If the record is not a key/value mapping
        """
        if not isinstance(record, Mapping):
            raise ListingValidationError(
                f"Listing record must be a mapping, got {type(record).__name__}"
            )
        return cls.model_validate(dict(record))
