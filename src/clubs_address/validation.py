from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .models import AddressRecord, Country, Province, ValidationFailure
from .normalization import (
    PostalPatternError,
    capitalize_words,
    clean_text,
    email_error,
    extract_digits,
    format_phone_dashes,
    insert_space_in_postal,
    postal_code_is_valid,
)

logger = logging.getLogger(__name__)

ProvinceLookup = Callable[[str], Optional[Province]]
CountryLookup = Callable[[str], Optional[Country]]

NAME_FIELDS = ("first_name", "last_name", "company_name")
CAPITALIZED_FIELDS = NAME_FIELDS + ("street_address", "city")
POSTAL_ADDRESS_FIELDS = ("street_address", "city", "postal_code", "province_code")


@dataclass
class ValidationSettings:
    postal_space_position: int = 3
    phone_length: int = 10
    spaced_postal_country: str = "CA"
    check_email_deliverability: bool = False


def innermost_message(exc: BaseException) -> str:
    while True:
        inner = exc.__cause__ or exc.__context__
        if inner is None:
            break
        exc = inner
    return str(exc) or type(exc).__name__


def normalize_fields(record: AddressRecord) -> AddressRecord:
    """Trim, case and strip the record's text fields in place."""
    for name in AddressRecord.TEXT_FIELDS:
        setattr(record, name, clean_text(getattr(record, name)))
    for name in CAPITALIZED_FIELDS:
        setattr(record, name, capitalize_words(getattr(record, name)))
    record.postal_code = record.postal_code.upper()
    record.province_code = record.province_code.upper()
    record.phone = extract_digits(record.phone)
    return record


class AddressValidator:
    """
    Normalizes a name & address record in place and reports every rule it
    breaks as a field-tagged ``ValidationFailure``.

    Checks run in a fixed order so messages reach the user in a stable order.
    None of them stop the pass early; only the postal code checks depend on
    the province lookup having succeeded.
    """

    def __init__(
        self,
        find_province: ProvinceLookup,
        find_country: CountryLookup,
        settings: Optional[ValidationSettings] = None,
    ):
        self.find_province = find_province
        self.find_country = find_country
        self.settings = settings or ValidationSettings()

    def validate(self, record: AddressRecord) -> List[ValidationFailure]:
        failures: List[ValidationFailure] = []

        def fail(message: str, *fields: str) -> None:
            logger.debug("Record %s: %s %s", record.name_address_id, fields, message)
            failures.append(ValidationFailure(message=message, fields=tuple(fields)))

        normalize_fields(record)

        if not (record.first_name or record.last_name or record.company_name):
            fail(
                "At least one of First Name, Last Name, or Company Name must be specified.",
                *NAME_FIELDS,
            )

        province: Optional[Province] = None
        if record.province_code:
            province, error = self._lookup_province(record.province_code)
            if error:
                fail(error, "province_code")

        if record.postal_code:
            if province is None:
                fail("Province Code is required for Postal Code adjustment.", "postal_code")
            else:
                error = self._check_postal_code(record, province)
                if error:
                    fail(error, "postal_code")

        if not record.email and not all(getattr(record, name) for name in POSTAL_ADDRESS_FIELDS):
            fail(
                "All the postal addressing information is required if Email is not provided.",
                "email",
            )

        if len(record.phone) != self.settings.phone_length:
            fail(f"Phone must be exactly {self.settings.phone_length} digits.", "phone")
        else:
            record.phone = format_phone_dashes(record.phone)

        email_message = email_error(
            record.email, check_deliverability=self.settings.check_email_deliverability
        )
        if email_message:
            fail(f"Email is invalid: {email_message}", "email")

        return failures

    def is_valid(self, record: AddressRecord) -> bool:
        return not self.validate(record)

    def _lookup_province(self, code: str) -> Tuple[Optional[Province], str]:
        try:
            province = self.find_province(code)
        except Exception as exc:  # lookup faults surface as field errors
            logger.warning("Province lookup failed for %s: %s", code, exc)
            return None, innermost_message(exc)
        if province is None:
            return None, "The given Province Code is not found."
        return province, ""

    def _check_postal_code(self, record: AddressRecord, province: Province) -> str:
        try:
            country = self.find_country(province.country_code)
        except Exception as exc:  # lookup faults surface as field errors
            logger.warning("Country lookup failed for %s: %s", province.country_code, exc)
            return innermost_message(exc)
        if country is None:
            return f"Country '{province.country_code}' for the given Province Code is not found."

        try:
            matches = postal_code_is_valid(record.postal_code, country.postal_pattern)
        except PostalPatternError as exc:
            logger.warning("Country %s has a broken postal pattern: %s", country.country_code, exc)
            return str(exc)
        if not matches:
            return "Postal Code does not match the Country Postal Pattern."

        if country.country_code.strip().upper() != self.settings.spaced_postal_country.upper():
            return ""
        if record.postal_code[0] not in province.allowed_first_letters:
            return (
                "Postal Code does not match the Province First Postal Letter. "
                f"Possible values: {province.first_postal_letter}"
            )
        record.postal_code = insert_space_in_postal(
            record.postal_code, self.settings.postal_space_position
        )
        return ""


def validate_address_record(
    record: AddressRecord,
    find_province: ProvinceLookup,
    find_country: CountryLookup,
    settings: Optional[ValidationSettings] = None,
) -> List[ValidationFailure]:
    return AddressValidator(find_province, find_country, settings).validate(record)
