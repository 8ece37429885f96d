"""
billing_config -- single public entrypoint for billing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the returned
    ``BillingConfig`` by injection and never read files themselves.

Architecture position:
    Configuration -- YAML-driven, validated at load time.  Sits beside
    ``billing_kernel`` and below ``billing_modules``.

Failure modes:
    - ``ConfigurationError`` -- missing file, malformed YAML or a value
      that fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``billing_config_loaded`` log entry with the config id and version.
"""

from __future__ import annotations

from pathlib import Path

from billing_config.loader import load_config
from billing_config.schema import (
    BillingConfig,
    ChecklistDef,
    FeeScheduleEntry,
    StageKeywordsDef,
)
from billing_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> BillingConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration file.  Defaults to
            the packaged ``sets/default.yaml``.

    Returns:
        A validated, frozen ``BillingConfig``.

    Raises:
        ConfigurationError: If the file cannot be loaded or validated.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config(path)

    _logger.info(
        "billing_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "source": str(path),
            "checklist_count": len(config.checklists),
        },
    )
    return config


__all__ = [
    "BillingConfig",
    "ChecklistDef",
    "DEFAULT_CONFIG_PATH",
    "FeeScheduleEntry",
    "StageKeywordsDef",
    "get_active_config",
]
