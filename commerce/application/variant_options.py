"""Variant option normalization.

Clients send and receive options as a list of ``{"name", "value"}`` pairs.
Storage keeps the same list in the ``options`` JSON column. The three
fixed-slot ``optionN_name``/``optionN_value`` columns are deprecated: new
writes never populate them and reads never expose them.
"""

from typing import Any, Iterable, List, Mapping

from shared.core import get_logger

from .errors import OptionValidationError

logger = get_logger(__name__)

MAX_VARIANT_OPTIONS = 10

LEGACY_OPTION_COLUMNS = (
    "option1_name", "option1_value",
    "option2_name", "option2_value",
    "option3_name", "option3_value",
)


def _option_name(option: Any) -> str:
    if isinstance(option, Mapping):
        return str(option.get("name", ""))
    return str(getattr(option, "name", ""))


def _as_mapping(obj: Any) -> dict:
    if isinstance(obj, Mapping):
        return dict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__table__"):
        return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}
    raise TypeError(f"Cannot read variant data from {type(obj).__name__}")


def _coerce_options(variant: dict) -> List[dict]:
    options = variant.get("options")
    if options is None:
        return []
    if not isinstance(options, (list, tuple)):
        logger.warning(
            "Variant options are not a list; treating as empty",
            extra={'extra_fields': {'variant_id': variant.get("id"), 'type': type(options).__name__}}
        )
        return []
    normalized = []
    for option in options:
        if not isinstance(option, Mapping) and not hasattr(option, "model_dump"):
            raise OptionValidationError("invalid option entry")
        normalized.append(_as_mapping(option))
    return normalized


def validate_options(options: Iterable[Any]) -> None:
    """Raise OptionValidationError unless the options list is acceptable."""
    options = list(options)
    if len(options) > MAX_VARIANT_OPTIONS:
        raise OptionValidationError("too many options")

    names = [_option_name(option).lower() for option in options]
    if len(names) != len(set(names)):
        raise OptionValidationError("duplicate option names")


def normalize_for_storage(raw_variant: Any) -> dict:
    """Turn an incoming variant payload into column values for persistence."""
    stored = _as_mapping(raw_variant)
    options = _coerce_options(stored)
    validate_options(options)

    stored["options"] = options
    for column in LEGACY_OPTION_COLUMNS:
        stored[column] = None
    return stored


def normalize_for_client(stored_variant: Any) -> dict:
    """Outbound representation: legacy columns removed, options always a list."""
    variant = _as_mapping(stored_variant)
    variant["options"] = _coerce_options(variant)
    for column in LEGACY_OPTION_COLUMNS:
        variant.pop(column, None)
    return variant


def normalize_many(stored_variants: Iterable[Any]) -> List[dict]:
    return [normalize_for_client(variant) for variant in stored_variants]
