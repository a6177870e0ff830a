import pytest

from clubs_address.common import (
    AddressRecord,
    AddressValidator,
    Country,
    Province,
    ReferenceData,
    ValidationFailure,
    ValidationSettings,
    capitalize_words,
    email_error,
    extract_digits,
    insert_space_in_postal,
    postal_code_is_valid,
    validate_address_record,
)
from clubs_address.normalization import PostalPatternError

CANADA_PATTERN = r"^[A-Za-z]\d[A-Za-z] ?\d[A-Za-z]\d$"


def _reference():
    return ReferenceData(
        countries=[
            Country(country_code="CA", name="Canada", postal_pattern=CANADA_PATTERN),
            Country(country_code="US", name="United States", postal_pattern=r"^\d{5}(-\d{4})?$"),
            Country(country_code="ZZ", name="Nowhere", postal_pattern=""),
        ],
        provinces=[
            Province(province_code="ON", name="Ontario", country_code="CA", first_postal_letter="KLMNP"),
            Province(province_code="QC", name="Quebec", country_code="CA", first_postal_letter="GHJ"),
            Province(province_code="NY", name="New York", country_code="US"),
            Province(province_code="XX", name="Anywhere", country_code="ZZ"),
        ],
    )


def _validator(settings=None):
    reference = _reference()
    return AddressValidator(reference.find_province, reference.find_country, settings)


def _record(**overrides):
    values = dict(
        first_name="john",
        last_name="smith",
        street_address="24 sussex drive",
        city="ottawa",
        postal_code="k1a0b1",
        province_code="on",
        email="",
        phone="(613) 555-0100",
    )
    values.update(overrides)
    return AddressRecord(**values)


def _fields(failures):
    return [failure.fields for failure in failures]


def test_capitalize_words_collapses_spaces_and_fixes_case():
    assert capitalize_words("  john   SMITH  ") == "John Smith"
    assert capitalize_words("o'NEIL") == "O'neil"
    assert capitalize_words(None) == ""
    assert capitalize_words("   ") == ""
    once = capitalize_words("the   ROLLING stones")
    assert capitalize_words(once) == once == "The Rolling Stones"


def test_extract_digits_ignores_punctuation():
    assert extract_digits("(613) 555-0100") == "6135550100"
    assert extract_digits("613.555.0100 ext") == "6135550100"
    assert extract_digits(None) == ""


def test_insert_space_in_postal_is_idempotent():
    assert insert_space_in_postal("K1A0B1", 3) == "K1A 0B1"
    assert insert_space_in_postal("K1A 0B1", 3) == "K1A 0B1"
    assert insert_space_in_postal(" K 1A0 B1 ", 3) == "K1A 0B1"
    assert insert_space_in_postal("K1A", 3) == "K1A"
    assert insert_space_in_postal(None, 3) == ""


def test_postal_code_is_valid_treats_empty_pattern_as_anything():
    assert postal_code_is_valid("whatever", "") is True
    assert postal_code_is_valid("", CANADA_PATTERN) is True
    assert postal_code_is_valid("K1A0B1", CANADA_PATTERN) is True
    assert postal_code_is_valid("12345", CANADA_PATTERN) is False
    with pytest.raises(PostalPatternError):
        postal_code_is_valid("K1A0B1", "[unclosed")


def test_email_error_accepts_blank_and_reports_parse_errors():
    assert email_error("") is None
    assert email_error(None) is None
    assert email_error("jane.doe@example.com") is None
    assert email_error("not-an-email")


def test_full_name_variants():
    assert AddressRecord(first_name="John", last_name="Smith").full_name == "Smith, John"
    assert AddressRecord(first_name="John").full_name == "John"
    assert AddressRecord(last_name="Smith").full_name == "Smith"
    assert AddressRecord(company_name="Acme").full_name == ""


def test_valid_ontario_record_is_normalized():
    record = _record()
    failures = _validator().validate(record)
    assert failures == []
    assert record.first_name == "John"
    assert record.last_name == "Smith"
    assert record.street_address == "24 Sussex Drive"
    assert record.city == "Ottawa"
    assert record.province_code == "ON"
    assert record.postal_code == "K1A 0B1"
    assert record.phone == "613-555-0100"


def test_validation_is_idempotent():
    validator = _validator()
    record = _record(postal_code="m5v 3l9", phone="416 555 0199")
    assert validator.validate(record) == []
    snapshot = record.to_dict()
    assert validator.validate(record) == []
    assert record.to_dict() == snapshot
    assert record.postal_code == "M5V 3L9"
    assert record.postal_code.count(" ") == 1 and record.postal_code[3] == " "


def test_phone_punctuation_does_not_matter():
    for raw in ("(613) 555-0100", "6135550100"):
        record = _record(phone=raw)
        assert _validator().validate(record) == []
        assert record.phone == "613-555-0100"


def test_wrong_length_phone_is_reported():
    record = _record(phone="555-0100")
    failures = _validator().validate(record)
    assert _fields(failures) == [("phone",)]
    assert failures[0].message == "Phone must be exactly 10 digits."
    assert record.phone == "5550100"


def test_missing_names_reported_once_for_all_three_fields():
    record = _record(first_name="  ", last_name=None, company_name="")
    failures = _validator().validate(record)
    assert _fields(failures) == [("first_name", "last_name", "company_name")]


def test_company_name_alone_is_enough():
    record = _record(first_name="", last_name="", company_name="  maple  leaf   records ")
    assert _validator().validate(record) == []
    assert record.company_name == "Maple Leaf Records"
    assert record.full_name == ""


def test_unknown_province_is_reported_and_postal_needs_province():
    record = _record(province_code="zz")
    failures = _validator().validate(record)
    assert _fields(failures) == [("province_code",), ("postal_code",)]
    assert failures[0].message == "The given Province Code is not found."
    assert failures[1].message == "Province Code is required for Postal Code adjustment."
    assert record.postal_code == "K1A0B1"


def test_postal_code_without_province_skips_pattern_checks():
    calls = []

    def find_country(code):
        calls.append(code)
        return None

    reference = _reference()
    record = _record(province_code="", email="john@example.com")
    failures = validate_address_record(record, reference.find_province, find_country)
    assert _fields(failures) == [("postal_code",)]
    assert calls == []


def test_wrong_first_letter_cites_allowed_letters():
    record = _record(postal_code="Z1A0B1")
    failures = _validator().validate(record)
    assert _fields(failures) == [("postal_code",)]
    assert "KLMNP" in failures[0].message
    assert record.postal_code == "Z1A0B1"


def test_postal_pattern_mismatch():
    record = _record(postal_code="12345")
    failures = _validator().validate(record)
    assert _fields(failures) == [("postal_code",)]
    assert failures[0].message == "Postal Code does not match the Country Postal Pattern."


def test_non_spaced_country_keeps_postal_code_as_is():
    record = _record(province_code="NY", postal_code="10001-1234", city="new york")
    assert _validator().validate(record) == []
    assert record.postal_code == "10001-1234"


def test_empty_pattern_accepts_any_postal_code():
    record = _record(province_code="xx", postal_code="anything 9")
    assert _validator().validate(record) == []
    assert record.postal_code == "ANYTHING 9"


def test_email_required_when_postal_information_missing():
    for missing in ("street_address", "city", "postal_code", "province_code"):
        record = _record(**{missing: ""})
        failures = _validator().validate(record)
        assert ("email",) in _fields(failures)
        assert sum(1 for fields in _fields(failures) if fields == ("email",)) == 1


def test_email_present_relaxes_postal_requirement():
    record = AddressRecord(first_name="ann", email="ann@example.com", phone="6135550100")
    assert _validator().validate(record) == []
    assert record.full_name == "Ann"


def test_malformed_email_is_reported_last():
    record = _record(email="not-an-email", phone="123")
    failures = _validator().validate(record)
    assert _fields(failures) == [("phone",), ("email",)]
    assert failures[-1].message.startswith("Email is invalid: ")


def test_lookup_fault_becomes_field_error():
    def broken_province(code):
        try:
            raise ConnectionError("database is offline")
        except ConnectionError as exc:
            raise RuntimeError("lookup failed") from exc

    reference = _reference()
    record = _record()
    failures = validate_address_record(record, broken_province, reference.find_country)
    assert failures[0].fields == ("province_code",)
    assert failures[0].message == "database is offline"
    assert ("postal_code",) in _fields(failures)


def test_missing_country_for_province_is_reported():
    reference = _reference()
    record = _record()
    failures = validate_address_record(record, reference.find_province, lambda code: None)
    assert _fields(failures) == [("postal_code",)]
    assert "'CA'" in failures[0].message


def test_settings_change_space_position_and_phone_length():
    settings = ValidationSettings(postal_space_position=2, phone_length=7)
    record = _record(phone="555-0100")
    assert _validator(settings).validate(record) == []
    assert record.postal_code == "K1 A0B1"
    assert record.phone == "5550100"


def test_lower_case_reference_data_is_matched_case_insensitively():
    reference = ReferenceData(
        countries=[Country(country_code="ca", name="Canada", postal_pattern=CANADA_PATTERN)],
        provinces=[
            Province(province_code="on", name="Ontario", country_code="ca", first_postal_letter="klmnp")
        ],
    )
    assert reference.find_province("ON").first_postal_letter == "KLMNP"
    assert reference.find_country("CA").country_code == "CA"

    record = _record(postal_code="k1a0b1")
    assert validate_address_record(record, reference.find_province, reference.find_country) == []
    assert record.postal_code == "K1A 0B1"

    record = _record(postal_code="z1a0b1")
    failures = validate_address_record(record, reference.find_province, reference.find_country)
    assert _fields(failures) == [("postal_code",)]
    assert "KLMNP" in failures[0].message


def test_country_lookup_fault_becomes_postal_code_error():
    def broken_country(code):
        raise OSError("db down")

    reference = _reference()
    record = _record()
    failures = validate_address_record(record, reference.find_province, broken_country)
    assert failures == [ValidationFailure(message="db down", fields=("postal_code",))]
    assert record.postal_code == "K1A0B1"


def test_broken_postal_pattern_becomes_postal_code_error():
    reference = ReferenceData(
        countries=[Country(country_code="CA", name="Canada", postal_pattern="[unclosed")],
        provinces=[Province(province_code="ON", name="Ontario", country_code="CA")],
    )
    record = _record()
    failures = validate_address_record(record, reference.find_province, reference.find_country)
    assert _fields(failures) == [("postal_code",)]
    assert "Invalid postal pattern" in failures[0].message


def test_is_valid_reports_overall_result():
    validator = _validator()
    assert validator.is_valid(_record()) is True
    assert validator.is_valid(_record(phone="12")) is False


def test_capitalize_words_keeps_single_character_mapping():
    assert capitalize_words("ßtraße   ONE") == "ßtraße One"
