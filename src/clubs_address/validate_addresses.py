from __future__ import annotations

import argparse
import csv
import logging
import os
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .common import (
    AddressRecord,
    AddressValidator,
    ensure_address_record,
    load_app_config,
    load_reference_data,
)
from .config_loader import AppConfig
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)

NORMALIZED_CSV = "normalized_name_address.csv"
ERRORS_CSV = "name_address_errors.csv"
ERROR_COLUMNS = ["name_address_id", "row_index", "field", "message"]


def _row_to_record(row: pd.Series) -> AddressRecord:
    return ensure_address_record({str(key): value for key, value in row.items()})


def _read_records(path: str) -> pd.DataFrame:
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def validate_frame(
    df: pd.DataFrame, validator: AddressValidator
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    normalized_rows: List[Dict[str, Any]] = []
    error_rows: List[Dict[str, Any]] = []
    for row_index, row in df.iterrows():
        record = _row_to_record(row)
        failures = validator.validate(record)
        payload = record.to_dict()
        payload["name_address_id"] = (
            "" if record.name_address_id is None else str(record.name_address_id)
        )
        payload["valid"] = not failures
        payload["error_count"] = len(failures)
        normalized_rows.append(payload)
        for failure in failures:
            for field_name in failure.fields:
                error_rows.append(
                    {
                        "name_address_id": payload["name_address_id"],
                        "row_index": row_index,
                        "field": field_name,
                        "message": failure.message,
                    }
                )

    normalized_df = pd.DataFrame(normalized_rows)
    if not normalized_df.empty:
        normalized_df = normalized_df.sort_values("full_name", kind="stable").reset_index(drop=True)
    errors_df = pd.DataFrame(error_rows, columns=ERROR_COLUMNS)
    return normalized_df, errors_df


def build(
    args: argparse.Namespace, config: Optional[AppConfig] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    config = config or load_app_config(args)
    records_csv = config.inputs.records_csv
    if not records_csv or not os.path.exists(records_csv):
        raise FileNotFoundError(f"Name & address records not found: {records_csv}")

    reference = load_reference_data(config.reference_data.path)
    validator = AddressValidator(
        reference.find_province,
        reference.find_country,
        config.validation.to_settings(),
    )

    df = _read_records(records_csv)
    normalized_df, errors_df = validate_frame(df, validator)

    out_dir = config.outputs.dir
    out_dir.mkdir(parents=True, exist_ok=True)
    normalized_df.to_csv(
        out_dir / NORMALIZED_CSV, index=False, encoding="utf-8", quoting=csv.QUOTE_ALL
    )
    errors_df.to_csv(out_dir / ERRORS_CSV, index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)

    invalid = int((~normalized_df["valid"]).sum()) if not normalized_df.empty else 0
    logger.info(
        "Validated %d name & address record(s): %d invalid, %d field error(s)",
        len(normalized_df),
        invalid,
        len(errors_df),
    )
    return normalized_df, errors_df


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize & validate name and address records.")
    parser.add_argument("--config", type=str, default=None)
    parser.add_argument("--records-csv", type=str, default=None)
    parser.add_argument("--reference-data", type=str, default=None)
    parser.add_argument("--out-dir", type=str, default=None)
    parser.add_argument(
        "--email-dns-check",
        action="store_true",
        default=None,
        help="Also check that email domains can receive mail",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")

    args = parser.parse_args(argv)
    config = load_app_config(args)
    configure_logging(config, level_override=args.log_level)

    try:
        normalized_df, errors_df = build(args, config)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    total = len(normalized_df)
    valid = int(normalized_df["valid"].sum()) if total else 0
    print(
        {
            "records_total": total,
            "records_valid": valid,
            "records_invalid": total - valid,
            "field_errors": len(errors_df),
        }
    )
    print(f"Saved: {config.outputs.dir / NORMALIZED_CSV}")
    print(f"Saved: {config.outputs.dir / ERRORS_CSV}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
