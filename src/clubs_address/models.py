from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, Tuple


def _text(payload: Dict[str, Any], key: str) -> str:
    return str(payload.get(key, "") or "")


def _code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


@dataclass(frozen=True)
class Country:
    country_code: str
    name: str = ""
    postal_pattern: str = ""
    province_terminology: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "country_code", _code(self.country_code))

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "Country":
        return Country(
            country_code=_text(payload, "country_code"),
            name=_text(payload, "name").strip(),
            postal_pattern=_text(payload, "postal_pattern").strip(),
            province_terminology=_text(payload, "province_terminology").strip(),
        )


@dataclass(frozen=True)
class Province:
    province_code: str
    country_code: str
    name: str = ""
    first_postal_letter: str = ""

    def __post_init__(self) -> None:
        # codes and letters are compared against upper-cased record fields
        object.__setattr__(self, "province_code", _code(self.province_code))
        object.__setattr__(self, "country_code", _code(self.country_code))
        object.__setattr__(self, "first_postal_letter", _code(self.first_postal_letter))

    @property
    def allowed_first_letters(self) -> Set[str]:
        return set(self.first_postal_letter.upper())

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "Province":
        return Province(
            province_code=_text(payload, "province_code"),
            country_code=_text(payload, "country_code"),
            name=_text(payload, "name").strip(),
            first_postal_letter=_text(payload, "first_postal_letter"),
        )


@dataclass(frozen=True)
class ValidationFailure:
    message: str
    fields: Tuple[str, ...]


@dataclass
class AddressRecord:
    name_address_id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    company_name: str = ""
    street_address: str = ""
    city: str = ""
    postal_code: str = ""
    province_code: str = ""
    email: str = ""
    phone: str = ""

    TEXT_FIELDS = (
        "first_name",
        "last_name",
        "company_name",
        "street_address",
        "city",
        "postal_code",
        "province_code",
        "email",
        "phone",
    )

    @property
    def full_name(self) -> str:
        """
        "Last, First" when both names are present, whichever one is present
        otherwise, and an empty string when neither is.
        """
        if self.first_name and self.last_name:
            return f"{self.last_name}, {self.first_name}"
        return self.first_name or self.last_name or ""

    @staticmethod
    def _coerce_id(value: Any) -> Optional[int]:
        text = str(value if value is not None else "").strip()
        if text.isdigit():
            return int(text)
        return None

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "AddressRecord":
        return cls(
            name_address_id=cls._coerce_id(payload.get("name_address_id")),
            **{name: _text(payload, name) for name in cls.TEXT_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name_address_id": self.name_address_id}
        for name in self.TEXT_FIELDS:
            data[name] = getattr(self, name)
        data["full_name"] = self.full_name
        return data
