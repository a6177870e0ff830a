from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

from .validation import ValidationSettings


@dataclass
class InputsConfig:
    records_csv: Optional[str] = None


@dataclass
class OutputsConfig:
    dir: Path


@dataclass
class ValidationConfig:
    postal_space_position: int = 3
    phone_length: int = 10
    spaced_postal_country: str = "CA"
    email_check_deliverability: bool = False

    def to_settings(self) -> ValidationSettings:
        return ValidationSettings(
            postal_space_position=self.postal_space_position,
            phone_length=self.phone_length,
            spaced_postal_country=self.spaced_postal_country,
            check_email_deliverability=self.email_check_deliverability,
        )


@dataclass
class ReferenceDataConfig:
    path: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class AppConfig:
    inputs: InputsConfig
    outputs: OutputsConfig
    validation: ValidationConfig
    reference_data: ReferenceDataConfig
    logging: LoggingConfig


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_app_config(args: argparse.Namespace) -> AppConfig:
    config_path = getattr(args, "config", None)
    config_data = _load_yaml(config_path)
    inputs_cfg = config_data.get("inputs", {}) or {}
    outputs_cfg = config_data.get("outputs", {}) or {}
    validation_cfg = config_data.get("validation", {}) or {}
    logging_cfg = config_data.get("logging", {}) or {}

    inputs = InputsConfig(
        records_csv=getattr(args, "records_csv", None) or inputs_cfg.get("records_csv"),
    )

    outputs_dir = Path(getattr(args, "out_dir", None) or outputs_cfg.get("dir") or os.getcwd())
    outputs = OutputsConfig(dir=outputs_dir)

    validation = ValidationConfig(
        postal_space_position=int(validation_cfg.get("postal_space_position", 3)),
        phone_length=int(validation_cfg.get("phone_length", 10)),
        spaced_postal_country=str(validation_cfg.get("spaced_postal_country", "CA")).upper(),
        email_check_deliverability=getattr(args, "email_dns_check", None)
        or bool(validation_cfg.get("email_check_deliverability", False)),
    )

    # reference tables live in the config file itself unless pointed elsewhere
    reference_data = ReferenceDataConfig(
        path=getattr(args, "reference_data", None)
        or inputs_cfg.get("reference_data")
        or config_path,
    )

    arg_level = getattr(args, "log_level", None)
    effective_level = (arg_level or logging_cfg.get("level") or "WARNING").upper()
    logging_config = LoggingConfig(level=effective_level)

    return AppConfig(
        inputs=inputs,
        outputs=outputs,
        validation=validation,
        reference_data=reference_data,
        logging=logging_config,
    )
