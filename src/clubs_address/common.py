from __future__ import annotations

from typing import Any

from .config_loader import AppConfig, load_app_config
from .models import AddressRecord, Country, Province, ValidationFailure
from .normalization import (
    PostalPatternError,
    capitalize_words,
    email_error,
    extract_digits,
    format_phone_dashes,
    insert_space_in_postal,
    postal_code_is_valid,
)
from .reference_data import ReferenceData, ReferenceDataError, load_reference_data
from .validation import AddressValidator, ValidationSettings, validate_address_record

__all__ = [
    "AddressRecord",
    "AddressValidator",
    "AppConfig",
    "Country",
    "PostalPatternError",
    "Province",
    "ReferenceData",
    "ReferenceDataError",
    "ValidationFailure",
    "ValidationSettings",
    "capitalize_words",
    "email_error",
    "ensure_address_record",
    "extract_digits",
    "format_phone_dashes",
    "insert_space_in_postal",
    "load_app_config",
    "load_reference_data",
    "postal_code_is_valid",
    "validate_address_record",
]


def ensure_address_record(obj: Any) -> AddressRecord:
    if isinstance(obj, AddressRecord):
        return obj
    if isinstance(obj, dict):
        return AddressRecord.from_mapping(obj)
    raise TypeError(f"Unsupported name & address payload type: {type(obj)!r}")
