"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``billing_config.schema`` dataclasses.  Runtime callers go through
``billing_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Amounts and percentages are parsed into ``Decimal`` from their string
  form; floats never reach the schema.
* Every stage named in ``stage_keywords`` or ``fee_schedule`` has a
  checklist, and the fallback stage has one too.

Failure modes
-------------
* Missing file, malformed YAML, a missing required key or an invalid
  value all raise ``ConfigurationError`` naming the source file.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from billing_config.schema import (
    BillingConfig,
    ChecklistDef,
    FeeScheduleEntry,
    StageKeywordsDef,
)
from billing_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, unreadable or not a
            YAML mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {path}", source=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}", source=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(data).__name__}",
            source=str(path),
        )
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a YAML scalar into ``Decimal`` via its string form."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


def parse_checklists(data: dict[str, Any]) -> tuple[ChecklistDef, ...]:
    """Parse ``deliverables.checklists`` (stage -> list of names)."""
    checklists = []
    for stage, names in data.items():
        if not isinstance(names, list) or not names:
            raise ValueError(f"Checklist for stage {stage} must be a non-empty list")
        cleaned = tuple(str(n).strip() for n in names)
        if any(not n for n in cleaned):
            raise ValueError(f"Checklist for stage {stage} contains a blank name")
        checklists.append(ChecklistDef(stage=str(stage).upper(), deliverables=cleaned))
    return tuple(checklists)


def parse_stage_keywords(data: dict[str, Any]) -> tuple[StageKeywordsDef, ...]:
    return tuple(
        StageKeywordsDef(
            stage=str(stage).upper(),
            keywords=tuple(str(k).lower() for k in keywords),
        )
        for stage, keywords in data.items()
    )


def parse_fee_schedule(data: dict[str, Any]) -> tuple[FeeScheduleEntry, ...]:
    entries = []
    for stage, pct in data.items():
        value = parse_decimal(pct, f"fee_schedule.{stage}")
        if value < 0 or value > 100:
            raise ValueError(f"fee_schedule.{stage} must be between 0 and 100, got {value}")
        entries.append(FeeScheduleEntry(stage=str(stage).upper(), cumulative_percentage=value))
    return tuple(entries)


def parse_config(data: dict[str, Any]) -> BillingConfig:
    """
    Parse a configuration mapping into a ``BillingConfig``.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value is out of range or of the wrong shape.
    """
    invoicing = data.get("invoicing", {})
    deliverables = data.get("deliverables", {})

    terms = int(invoicing.get("default_payment_terms_days", 30))
    if terms < 0:
        raise ValueError(f"default_payment_terms_days must be >= 0, got {terms}")

    tax_rate = parse_decimal(invoicing.get("default_tax_rate", "0"), "default_tax_rate")
    if tax_rate < 0:
        raise ValueError(f"default_tax_rate must be >= 0, got {tax_rate}")

    padding = int(invoicing.get("invoice_number_padding", 3))
    if padding < 1:
        raise ValueError(f"invoice_number_padding must be >= 1, got {padding}")

    config = BillingConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        default_payment_terms_days=terms,
        default_tax_rate=tax_rate,
        invoice_number_padding=padding,
        fallback_stage=str(deliverables.get("fallback_stage", "GENERAL")).upper(),
        checklists=parse_checklists(deliverables.get("checklists", {})),
        stage_keywords=parse_stage_keywords(deliverables.get("stage_keywords", {})),
        fee_schedule=parse_fee_schedule(data.get("fee_schedule", {})),
    )
    _check_stage_references(config)
    return config


def _check_stage_references(config: BillingConfig) -> None:
    known = set(config.stages)
    if config.fallback_stage not in known:
        raise ValueError(f"No checklist for fallback stage {config.fallback_stage}")
    for kw in config.stage_keywords:
        if kw.stage not in known:
            raise ValueError(f"stage_keywords references unknown stage {kw.stage}")
    for entry in config.fee_schedule:
        if entry.stage not in known:
            raise ValueError(f"fee_schedule references unknown stage {entry.stage}")


def load_config(path: Path) -> BillingConfig:
    """Load and parse one configuration file."""
    data = load_yaml_file(path)
    try:
        return parse_config(data)
    except KeyError as e:
        raise ConfigurationError(f"Missing required key {e} in {path}", source=str(path)) from e
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}", source=str(path)) from e
