"""
Listing completion tracker.

Evaluates a fixed, ordered table of field rules against a flattened
listing record and reports which publish-blocking (mandatory) and
quality-improving (nth) fields are filled in.
"""

import math
from decimal import Decimal
from operator import attrgetter
from typing import Any, Mapping, Optional, Union

from pydantic.alias_generators import to_camel

from vesta.models.completion import (
    CompletionResult,
    FieldRule,
    FieldStatus,
    Importance,
    ImportanceBucket,
)
from vesta.models.listing import ListingView, PropertyType
from vesta.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)

MIN_DESCRIPTION_LENGTH = 20
MIN_YEAR = 1800
MIN_IMAGES = 5
MIN_IMAGES_REDUCED = 3
REDUCED_IMAGE_PROPERTY_TYPES = (PropertyType.GARAJE.value, PropertyType.SOLAR.value)


# Validators

def is_present(value: Any, listing: ListingView) -> bool:
    return value is not None


def is_positive(value: Any, listing: ListingView) -> bool:
    return value is not None and Decimal(value) > 0


def is_non_blank(value: Any, listing: ListingView) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_long_description(value: Any, listing: ListingView) -> bool:
    return isinstance(value, str) and len(value.strip()) >= MIN_DESCRIPTION_LENGTH


def is_plausible_year(value: Any, listing: ListingView) -> bool:
    return value is not None and value > MIN_YEAR


def is_true(value: Any, listing: ListingView) -> bool:
    return value is True


def minimum_images(property_type: Optional[str]) -> int:
    """Garages and plots need fewer photos; unknown types use the full minimum."""
    if property_type in REDUCED_IMAGE_PROPERTY_TYPES:
        return MIN_IMAGES_REDUCED
    return MIN_IMAGES


def has_enough_images(value: Any, listing: ListingView) -> bool:
    return (value or 0) >= minimum_images(listing.property_type)


def get_image_label(property_type: Optional[str]) -> str:
    return f"Imágenes (mínimo {minimum_images(property_type)})"


def _rule(
    attribute: str,
    label: str,
    importance: Importance,
    category: str,
    validator,
    rule_id: Optional[str] = None,
    property_types: Optional[tuple[PropertyType, ...]] = None
) -> FieldRule:
    field_path = to_camel(attribute)
    return FieldRule(
        id=rule_id or field_path,
        label=label,
        field_path=field_path,
        importance=importance,
        category=category,
        accessor=attrgetter(attribute),
        validator=validator,
        applicable_property_types=frozenset(property_types) if property_types else None,
    )


MANDATORY = Importance.MANDATORY
NTH = Importance.NTH

BASIC = "Información Básica"
ADDRESS = "Dirección"
DETAILS = "Detalles de la Propiedad"
DESCRIPTION = "Descripción"
IMAGES = "Imágenes"
ENERGY = "Certificado Energético"
FEATURES = "Características"
ORIENTATION = "Orientación"
EXTRAS = "Características Adicionales"
PREMIUM = "Características Premium"
COMMUNITY = "Comunidad"
KITCHEN = "Cocina"
SPACES = "Espacios Adicionales"
MATERIALS = "Materiales"
LUXURY = "Lujo"

RESIDENTIAL = (PropertyType.PISO, PropertyType.CASA)

FIELD_RULES: tuple[FieldRule, ...] = (
    # Publish-blocking
    _rule("price", "Precio", MANDATORY, BASIC, is_positive),
    _rule("listing_type", "Tipo de anuncio", MANDATORY, BASIC, is_non_blank),
    _rule("property_type", "Tipo de propiedad", MANDATORY, BASIC, is_non_blank),
    _rule("street", "Calle", MANDATORY, ADDRESS, is_non_blank),
    _rule("city", "Ciudad", MANDATORY, ADDRESS, is_non_blank),
    _rule("province", "Provincia", MANDATORY, ADDRESS, is_non_blank),
    _rule("postal_code", "Código postal", MANDATORY, ADDRESS, is_non_blank),
    _rule(
        "square_meter", "Superficie", MANDATORY, DETAILS, is_positive,
        property_types=(PropertyType.PISO, PropertyType.CASA, PropertyType.LOCAL, PropertyType.SOLAR),
    ),
    _rule(
        "built_surface_area", "Superficie construida", MANDATORY, DETAILS, is_positive,
        property_types=(PropertyType.GARAJE,),
    ),
    _rule("bedrooms", "Dormitorios", MANDATORY, DETAILS, is_present, property_types=RESIDENTIAL),
    _rule(
        "bathrooms", "Baños", MANDATORY, DETAILS, is_present,
        property_types=(PropertyType.PISO, PropertyType.CASA, PropertyType.LOCAL),
    ),
    _rule("description", "Descripción completa", MANDATORY, DESCRIPTION, is_long_description),
    _rule("image_count", "Imágenes", MANDATORY, IMAGES, has_enough_images, rule_id="images"),

    # Quality
    _rule("title", "Título", NTH, BASIC, is_non_blank),
    _rule("short_description", "Descripción corta", NTH, DESCRIPTION, is_non_blank),
    _rule("property_subtype", "Subtipo de propiedad", NTH, BASIC, is_non_blank),
    _rule("year_built", "Año de construcción", NTH, DETAILS, is_plausible_year),
    _rule("last_renovation_year", "Año de última reforma", NTH, DETAILS, is_plausible_year),
    _rule("conservation_status", "Estado de conservación", NTH, DETAILS, is_present),
    _rule("building_floors", "Plantas del edificio", NTH, DETAILS, is_positive),
    _rule("built_surface_area", "Superficie construida", NTH, DETAILS, is_positive),
    _rule("cadastral_reference", "Referencia catastral", NTH, BASIC, is_non_blank),
    _rule("new_construction", "Obra nueva", NTH, BASIC, is_true),
    _rule("brand_new", "A estrenar", NTH, BASIC, is_true),
    _rule("vpo", "Vivienda de protección oficial", NTH, BASIC, is_true),
    _rule("neighborhood", "Barrio", NTH, ADDRESS, is_non_blank),
    _rule("municipality", "Municipio", NTH, ADDRESS, is_non_blank),
    _rule("address_details", "Detalles de dirección", NTH, ADDRESS, is_non_blank),
    _rule("energy_certificate_status", "Certificado energético", NTH, ENERGY, is_non_blank),
    _rule("energy_consumption_scale", "Escala de consumo", NTH, ENERGY, is_non_blank),
    _rule("emissions_scale", "Escala de emisiones", NTH, ENERGY, is_non_blank),
    _rule("has_elevator", "Ascensor", NTH, FEATURES, is_true),
    _rule("has_garage", "Garaje", NTH, FEATURES, is_true),
    _rule("garage_type", "Tipo de garaje", NTH, FEATURES, is_non_blank),
    _rule("garage_spaces", "Plazas de garaje", NTH, FEATURES, is_positive),
    _rule("has_storage_room", "Trastero", NTH, FEATURES, is_true),
    _rule("storage_room_size", "Tamaño del trastero", NTH, FEATURES, is_positive),
    _rule("has_heating", "Calefacción", NTH, FEATURES, is_true),
    _rule("heating_type", "Tipo de calefacción", NTH, FEATURES, is_non_blank),
    _rule("hot_water_type", "Agua caliente", NTH, FEATURES, is_non_blank),
    _rule("air_conditioning_type", "Aire acondicionado", NTH, FEATURES, is_non_blank),
    _rule("is_furnished", "Amueblado", NTH, FEATURES, is_true),
    _rule("furniture_quality", "Calidad del mobiliario", NTH, FEATURES, is_non_blank),
    _rule("pets_allowed", "Se admiten mascotas", NTH, FEATURES, is_true),
    _rule("appliances_included", "Electrodomésticos incluidos", NTH, FEATURES, is_true),
    _rule("exterior", "Exterior", NTH, ORIENTATION, is_true),
    _rule("bright", "Luminoso", NTH, ORIENTATION, is_true),
    _rule("orientation", "Orientación", NTH, ORIENTATION, is_non_blank),
    _rule("disabled_accessible", "Accesible para discapacitados", NTH, EXTRAS, is_true),
    _rule("video_intercom", "Videoportero", NTH, EXTRAS, is_true),
    _rule("alarm", "Alarma", NTH, EXTRAS, is_true),
    _rule("security_door", "Puerta de seguridad", NTH, EXTRAS, is_true),
    _rule("kitchen_type", "Tipo de cocina", NTH, EXTRAS, is_non_blank),
    _rule("concierge_service", "Conserjería", NTH, EXTRAS, is_true),
    _rule("security_guard", "Vigilante de seguridad", NTH, EXTRAS, is_true),
    _rule("satellite_dish", "Antena parabólica", NTH, EXTRAS, is_true),
    _rule("double_glazing", "Doble acristalamiento", NTH, EXTRAS, is_true),
    _rule("views", "Vistas", NTH, PREMIUM, is_true),
    _rule("mountain_views", "Vistas a la montaña", NTH, PREMIUM, is_true),
    _rule("sea_views", "Vistas al mar", NTH, PREMIUM, is_true),
    _rule("beachfront", "Primera línea de playa", NTH, PREMIUM, is_true),
    _rule("pool", "Piscina", NTH, PREMIUM, is_true),
    _rule("garden", "Jardín", NTH, PREMIUM, is_true),
    _rule("gym", "Gimnasio", NTH, COMMUNITY, is_true),
    _rule("sports_area", "Zona deportiva", NTH, COMMUNITY, is_true),
    _rule("children_area", "Zona infantil", NTH, COMMUNITY, is_true),
    _rule("suite_bathroom", "Baño en suite", NTH, COMMUNITY, is_true),
    _rule("nearby_public_transport", "Transporte público cercano", NTH, COMMUNITY, is_true),
    _rule("community_pool", "Piscina comunitaria", NTH, COMMUNITY, is_true),
    _rule("private_pool", "Piscina privada", NTH, COMMUNITY, is_true),
    _rule("tennis_court", "Pista de tenis", NTH, COMMUNITY, is_true),
    _rule("open_kitchen", "Cocina abierta", NTH, KITCHEN, is_true),
    _rule("french_kitchen", "Cocina francesa", NTH, KITCHEN, is_true),
    _rule("furnished_kitchen", "Cocina amueblada", NTH, KITCHEN, is_true),
    _rule("pantry", "Despensa", NTH, KITCHEN, is_true),
    _rule("terrace", "Terraza", NTH, SPACES, is_true),
    _rule("terrace_size", "Tamaño de terraza", NTH, SPACES, is_positive),
    _rule("balcony_count", "Número de balcones", NTH, SPACES, is_positive),
    _rule("gallery_count", "Número de galerías", NTH, SPACES, is_positive),
    _rule("living_room_size", "Tamaño del salón", NTH, SPACES, is_positive),
    _rule("wine_cellar", "Bodega", NTH, SPACES, is_true),
    _rule("built_in_wardrobes", "Armarios empotrados", NTH, SPACES, is_true),
    _rule("main_floor_type", "Tipo de suelo", NTH, MATERIALS, is_non_blank),
    _rule("shutter_type", "Tipo de persianas", NTH, MATERIALS, is_non_blank),
    _rule("carpentry_type", "Tipo de carpintería", NTH, MATERIALS, is_non_blank),
    _rule("window_type", "Tipo de ventanas", NTH, MATERIALS, is_non_blank),
    _rule("jacuzzi", "Jacuzzi", NTH, LUXURY, is_true),
    _rule("hydromassage", "Hidromasaje", NTH, LUXURY, is_true),
    _rule("home_automation", "Domótica", NTH, LUXURY, is_true),
    _rule("laundry_room", "Lavadero", NTH, LUXURY, is_true),
    _rule("fireplace", "Chimenea", NTH, LUXURY, is_true),
)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _field_status(rule: FieldRule, listing: ListingView, is_completed: bool) -> FieldStatus:
    label = get_image_label(listing.property_type) if rule.id == "images" else rule.label
    return FieldStatus(
        id=rule.id,
        label=label,
        field_path=rule.field_path,
        importance=rule.importance,
        category=rule.category,
        is_completed=is_completed,
    )


@timed("calculate_completion", logger=logger)
def calculate_completion(
    listing: Optional[Union[ListingView, Mapping[str, Any]]]
) -> CompletionResult:
    """
    Evaluate every applicable rule, in table order, against a listing.

    Accepts a ListingView or a flattened record (camelCase or snake_case
    keys). A missing listing yields an empty result that cannot be
    published.

    Raises:
        ListingValidationError: If the record is not a key/value mapping
    """
    if listing is None:
        return CompletionResult(overall_total=len(FIELD_RULES))

    if not isinstance(listing, ListingView):
        listing = ListingView.from_record(listing)

    buckets = {
        Importance.MANDATORY: ImportanceBucket(),
        Importance.NTH: ImportanceBucket(),
    }

    for rule in FIELD_RULES:
        if not rule.applies_to(listing.property_type):
            continue

        is_completed = rule.evaluate(listing)
        bucket = buckets[rule.importance]
        bucket.total += 1
        status = _field_status(rule, listing, is_completed)
        if is_completed:
            bucket.completed.append(status)
            bucket.completed_count += 1
        else:
            bucket.pending.append(status)

    mandatory = buckets[Importance.MANDATORY]
    nth = buckets[Importance.NTH]
    overall_completed = mandatory.completed_count + nth.completed_count
    overall_total = mandatory.total + nth.total
    overall_percentage = (
        round_half_up(overall_completed / overall_total * 100) if overall_total else 0
    )

    result = CompletionResult(
        mandatory=mandatory,
        nth=nth,
        overall_percentage=overall_percentage,
        overall_completed=overall_completed,
        overall_total=overall_total,
        can_publish_to_portals=not mandatory.pending,
    )
    logger.debug(
        "Calculated listing completion",
        property_type=listing.property_type,
        overall_percentage=overall_percentage,
        mandatory_pending=len(mandatory.pending)
    )
    return result
