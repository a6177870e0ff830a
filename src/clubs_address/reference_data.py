from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import yaml  # type: ignore[import-untyped]

from .models import Country, Province

logger = logging.getLogger(__name__)


class ReferenceDataError(ValueError):
    def __init__(self, messages: List[str]):
        super().__init__(" ".join(messages))
        self.messages = messages


def _key(code: Optional[str]) -> str:
    return (code or "").strip().upper()


class ReferenceData:
    """Country and province tables used to check postal codes."""

    def __init__(
        self,
        countries: Iterable[Country] = (),
        provinces: Iterable[Province] = (),
    ):
        self._countries: Dict[str, Country] = {}
        self._provinces: Dict[str, Province] = {}
        for country in countries:
            self.add_country(country)
        for province in provinces:
            self.add_province(province)

    def find_country(self, code: str) -> Optional[Country]:
        return self._countries.get(_key(code))

    def find_province(self, code: str) -> Optional[Province]:
        return self._provinces.get(_key(code))

    def add_country(self, country: Country) -> Country:
        errors: List[str] = []
        code = _key(country.country_code)
        if not code:
            errors.append("Country Code is required.")
        elif code in self._countries:
            errors.append(f"'{code}' is already taken - Country Code must be unique.")
        if country.name and any(c.name == country.name for c in self._countries.values()):
            errors.append(f"'{country.name}' is already taken - Country Name must be unique.")
        if errors:
            raise ReferenceDataError(errors)
        self._countries[code] = country
        return country

    def add_province(self, province: Province) -> Province:
        """
        Register a province. Code and name must both be unique and the
        country must already be on file; every problem is reported at once.
        """
        errors: List[str] = []
        code = _key(province.province_code)
        if not code:
            errors.append("Province Code is required.")
        elif code in self._provinces:
            errors.append(f"'{code}' is already taken - Province Code must be unique.")
        if province.name and any(p.name == province.name for p in self._provinces.values()):
            errors.append(f"'{province.name}' is already taken - Province Name must be unique.")
        if _key(province.country_code) not in self._countries:
            errors.append(f"Country Code '{province.country_code}' is not on file.")
        if errors:
            raise ReferenceDataError(errors)
        self._provinces[code] = province
        return province

    def countries(self) -> List[Country]:
        return sorted(self._countries.values(), key=lambda c: c.name)

    def provinces(self) -> List[Province]:
        return sorted(self._provinces.values(), key=lambda p: p.name)

    def provinces_for_country(self, country_code: str) -> List[Province]:
        code = _key(country_code)
        return sorted(
            (p for p in self._provinces.values() if _key(p.country_code) == code),
            key=lambda p: p.name,
        )

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "ReferenceData":
        countries = [Country.from_mapping(item) for item in payload.get("countries", []) or []]
        provinces = [Province.from_mapping(item) for item in payload.get("provinces", []) or []]
        return cls(countries=countries, provinces=provinces)


def load_reference_data(path: Optional[str]) -> ReferenceData:
    if not path:
        logger.warning("No reference data configured; every province lookup will miss")
        return ReferenceData()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    reference = ReferenceData.from_mapping(data.get("reference_data", {}) or {})
    logger.info(
        "Loaded %d countries and %d provinces from %s",
        len(reference.countries()),
        len(reference.provinces()),
        path,
    )
    return reference
