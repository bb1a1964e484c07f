"""
YAML -> ``ledger_config.schema`` parsing.

``get_scheduling_config()`` in the package root is the runtime entry point;
the functions here are its building blocks and are usable on their own.

Required seed keys are never defaulted: a missing key surfaces as
``KeyError`` and a bad date, amount or setting as ``ValueError``.  I/O
errors (``FileNotFoundError``, ``yaml.YAMLError``) reach the caller
unchanged.  The checksum of a document is the SHA-256 of its key-sorted
JSON form, so reordering keys in the file does not change it.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import SchedulingConfig, SchedulingSettings, SeriesSeedDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Top-level mapping of *path*; an empty file reads as ``{}``.

    Raises ``ValueError`` when the document is a list or a scalar.
    """
    with open(path, encoding="utf-8") as stream:
        data = yaml.safe_load(stream)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_date(value: Any) -> date:
    """ISO string or the ``date`` PyYAML already produced for unquoted values."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_amount(value: Any) -> Decimal:
    """Parse a monetary amount; floats go through ``str`` to avoid binary noise."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse amount from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Cannot parse amount from {value!r}") from None


def parse_scheduling_settings(data: dict[str, Any] | None) -> SchedulingSettings:
    """Parse ``SchedulingSettings``; absent keys keep their defaults.

    Raises:
        ValueError: unknown key, wrong type, or non-positive bound.
    """
    data = data or {}
    known = {f.name: f for f in fields(SchedulingSettings)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown scheduling settings: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for name, raw in data.items():
        if name == "strict_frequency_parsing":
            if not isinstance(raw, bool):
                raise ValueError(f"{name} must be a boolean, got {raw!r}")
            values[name] = raw
            continue
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise ValueError(f"{name} must be an integer, got {raw!r}")
        if raw <= 0:
            raise ValueError(f"{name} must be positive, got {raw}")
        values[name] = raw
    return SchedulingSettings(**values)


def parse_series_seed(data: dict[str, Any]) -> SeriesSeedDef:
    """Parse a SeriesSeedDef from a dict."""
    until = data.get("until")
    occurrences = data.get("occurrences")
    frequency = data.get("frequency")
    return SeriesSeedDef(
        name=data["name"],
        amount=parse_amount(data["amount"]),
        operation=data["operation"],
        category=data["category"],
        account=str(data["account"]),
        start_date=parse_date(data["start_date"]),
        recurrence_type=data["recurrence_type"],
        frequency=str(frequency) if frequency is not None else None,
        subcategory=data.get("subcategory"),
        to_account=str(data["to_account"]) if data.get("to_account") else None,
        until=parse_date(until) if until is not None else None,
        occurrences=int(occurrences) if occurrences is not None else None,
    )


def parse_scheduling_config(data: dict[str, Any]) -> SchedulingConfig:
    """Parse a whole scheduling document: ``settings`` plus ``series``."""
    return SchedulingConfig(
        settings=parse_scheduling_settings(data.get("settings")),
        seeds=tuple(parse_series_seed(item) for item in data.get("series") or ()),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Hex SHA-256 of *data* as key-sorted JSON."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
