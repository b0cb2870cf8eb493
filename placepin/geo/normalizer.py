"""Normalization boundary between provider objects and stored state.

Provider place and prediction objects expose coordinates through accessor
functions, extents through corner getters and photos through live fetch
handles. ``normalize_place`` and ``normalize_prediction`` turn any of those,
a provider JSON mapping, or an already normalized record into plain pydantic
models. Normalization is idempotent and never raises.
"""

import math
from collections.abc import Mapping
from datetime import date
from numbers import Real
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from placepin.core.config import Settings, settings
from placepin.core.logging import get_logger
from placepin.geo.models import Bounds, Geometry, LatLng, PhotoRef, Place, Prediction

logger = get_logger().bind(module="normalizer")

# Fields consumed into the typed part of a Place. Anything else is an
# "unknown" field and goes through the plain-value filter.
_KNOWN_PLACE_FIELDS = frozenset(
    {
        "id",
        "place_id",
        "name",
        "address",
        "formatted_address",
        "vicinity",
        "description",
        "types",
        "rating",
        "rating_count",
        "user_ratings_total",
        "geometry",
        "photos",
        "structured_formatting",
        "primary_text",
        "secondary_text",
    }
)

_PLAIN_SCALARS = (str, int, float, bool)


def _fields(obj: Any) -> dict[str, Any]:
    """Flatten any supported input into a field mapping."""
    if obj is None:
        return {}
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, Mapping):
        return dict(obj)
    try:
        attributes = vars(obj)
    except TypeError:
        return {}
    return {k: v for k, v in attributes.items() if not k.startswith("_")}


def _get(obj: Any, *names: str) -> Any:
    """Return the first present field among ``names`` on a mapping or object."""
    for name in names:
        if isinstance(obj, Mapping):
            value = obj.get(name)
        else:
            try:
                value = getattr(obj, name, None)
            except Exception as e:
                logger.warning("normalizer_field_unreadable", field=name, error=str(e))
                value = None
        if value is not None:
            return value
    return None


def _number(value: Any, field: str = "value") -> Optional[float]:
    """Resolve a numeric field: invoke accessors once, keep real numbers only.

    An accessor that raises counts as a missing value. The result may still
    be non-finite; callers decide what to do with NaN and infinities.
    """
    if callable(value):
        try:
            value = value()
        except Exception as e:
            logger.warning(
                "normalizer_accessor_failed",
                field=field,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            return None
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    return float(value)


def _finite(value: Any, field: str = "value") -> Optional[float]:
    number = _number(value, field)
    if number is None or not math.isfinite(number):
        return None
    return number


def _lat_lng(obj: Any) -> Optional[LatLng]:
    if obj is None:
        return None
    lat = _number(_get(obj, "lat"), "lat")
    lng = _number(_get(obj, "lng"), "lng")
    if lat is None or lng is None:
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        logger.warning(
            "normalizer_geometry_unreadable", reason="non_finite", lat=lat, lng=lng
        )
        return None
    return LatLng(lat=lat, lng=lng)


def _corner(obj: Any, getter: str, key: str) -> Optional[LatLng]:
    accessor = getattr(obj, getter, None)
    if callable(accessor):
        try:
            corner = accessor()
        except Exception as e:
            logger.warning("normalizer_accessor_failed", field=getter, error=str(e))
            return None
        return _lat_lng(corner)
    return _lat_lng(_get(obj, key))


def _bounds(obj: Any) -> Optional[Bounds]:
    """Convert an extent given as corner getters, corner mappings or edges."""
    if obj is None:
        return None

    northeast = _corner(obj, "get_north_east", "northeast")
    southwest = _corner(obj, "get_south_west", "southwest")
    if northeast is None or southwest is None:
        north, east = _finite(_get(obj, "north")), _finite(_get(obj, "east"))
        south, west = _finite(_get(obj, "south")), _finite(_get(obj, "west"))
        if None in (north, east, south, west):
            return None
        northeast = LatLng(lat=north, lng=east)
        southwest = LatLng(lat=south, lng=west)
    return Bounds(northeast=northeast, southwest=southwest)


def normalize_geometry(obj: Any) -> Optional[Geometry]:
    """Convert a provider geometry; ``None`` when there is no usable location."""
    if obj is None:
        return None
    try:
        location = _lat_lng(_get(obj, "location"))
        if location is None:
            return None
        return Geometry(
            location=location,
            viewport=_bounds(_get(obj, "viewport")),
            bounds=_bounds(_get(obj, "bounds")),
        )
    except Exception as e:
        logger.warning(
            "normalizer_geometry_unreadable",
            error=str(e),
            error_type=e.__class__.__name__,
        )
        return None


def _photos(raw: Any, place_id: Optional[str], limit: int) -> list[PhotoRef]:
    if not isinstance(raw, (list, tuple)):
        return []

    photos: list[PhotoRef] = []
    for index, photo in enumerate(raw[:limit]):
        if photo is None or isinstance(photo, _PLAIN_SCALARS):
            continue
        attributions = _get(photo, "attributions", "html_attributions")
        try:
            photos.append(
                PhotoRef(
                    id=str(_get(photo, "id") or f"photo_{place_id or 'unknown'}_{index}"),
                    width=int(_get(photo, "width") or 400),
                    height=int(_get(photo, "height") or 300),
                    attributions=[
                        str(a) for a in attributions or [] if isinstance(a, str)
                    ],
                )
            )
        except (ValidationError, TypeError, ValueError, OverflowError) as e:
            logger.warning("normalizer_photo_unreadable", index=index, error=str(e))
    return photos


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if item is not None]


def _text(value: Any) -> Optional[str]:
    if value is None or callable(value):
        return None
    try:
        return str(value)
    except Exception as e:
        logger.warning("normalizer_text_unreadable", error=str(e))
        return None


def _plain_value(key: str, value: Any) -> tuple[bool, Any]:
    """Decide whether an unknown field may be stored.

    Containers are copied member by member; non-plain members are dropped
    with their own diagnostic so the copy is always JSON-safe.

    Returns:
        (keep, value) where value is a detached copy for containers
    """
    if value is None:
        return True, None
    if callable(value):
        logger.warning("normalizer_dropped_field", field=key, reason="callable")
        return False, None
    if isinstance(value, _PLAIN_SCALARS) or isinstance(value, date):
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning("normalizer_dropped_field", field=key, reason="non_finite")
            return False, None
        return True, value
    if isinstance(value, (list, tuple)):
        items = []
        for index, item in enumerate(value):
            keep, copied = _plain_value(f"{key}[{index}]", item)
            if keep:
                items.append(copied)
        return True, items
    if type(value) is dict:
        members: dict[str, Any] = {}
        for name, item in value.items():
            if not isinstance(name, str):
                logger.warning(
                    "normalizer_dropped_field",
                    field=f"{key}.{name!r}",
                    reason="non_string_key",
                )
                continue
            keep, copied = _plain_value(f"{key}.{name}", item)
            if keep:
                members[name] = copied
        return True, members

    logger.warning(
        "normalizer_dropped_field",
        field=key,
        reason="non_plain_type",
        type=type(value).__name__,
    )
    return False, None


def normalize_place(obj: Any, config: Settings | None = None) -> Place:
    """Convert a provider-shaped place or prediction into a ``Place``.

    Args:
        obj: Provider object, provider JSON mapping, ``Prediction`` or
            already normalized ``Place``/dict
        config: Settings for the photo cap; the module-level settings by
            default

    Returns:
        A Place holding only plain data; ``geometry`` is omitted when the
        input carries no readable location
    """
    fields = _fields(obj)
    formatting = fields.get("structured_formatting")
    if not isinstance(formatting, Mapping):
        formatting = {}

    place_id = _text(_get(fields, "id", "place_id"))
    description = _text(fields.get("description"))
    name = (
        _text(fields.get("name"))
        or _text(formatting.get("main_text"))
        or _text(fields.get("primary_text"))
        or description
        or ""
    )
    address = (
        _text(_get(fields, "address", "formatted_address", "vicinity"))
        or ""
    )

    rating = _finite(fields.get("rating"), "rating")
    rating_count = _finite(
        _get(fields, "rating_count", "user_ratings_total"), "rating_count"
    )

    extras: dict[str, Any] = {}
    for key, value in fields.items():
        if key in _KNOWN_PLACE_FIELDS or key.startswith("_") or value is None:
            continue
        keep, copied = _plain_value(key, value)
        if keep:
            extras[key] = copied

    return Place(
        id=place_id,
        name=name,
        address=address,
        description=description,
        types=_string_list(fields.get("types")),
        rating=rating,
        rating_count=int(rating_count) if rating_count is not None else None,
        geometry=normalize_geometry(fields.get("geometry")),
        photos=_photos(
            fields.get("photos"),
            place_id,
            (config or settings).PHOTO_MAX_COUNT,
        ),
        **extras,
    )


def normalize_prediction(obj: Any) -> Prediction:
    """Convert a provider autocomplete prediction into a ``Prediction``."""
    fields = _fields(obj)
    formatting = fields.get("structured_formatting")
    if not isinstance(formatting, Mapping):
        formatting = {}

    description = _text(fields.get("description")) or ""
    return Prediction(
        id=_text(_get(fields, "id", "place_id")) or "",
        primary_text=(
            _text(fields.get("primary_text"))
            or _text(formatting.get("main_text"))
            or description
        ),
        secondary_text=(
            _text(fields.get("secondary_text"))
            or _text(formatting.get("secondary_text"))
            or ""
        ),
        description=description,
        types=_string_list(fields.get("types")),
    )
