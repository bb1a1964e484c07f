"""
ledger_config -- single public entrypoint for scheduling configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_scheduling_config()``.  Returns a frozen ``SchedulingConfig``
    holding engine settings and declarative series seeds.

Architecture position:
    Configuration -- YAML-driven, parsed into frozen dataclasses.  Sits
    beside ``ledger_scheduling``: the scheduling domain never imports from
    here, and ``bridges`` translates seeds into domain values.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` / ``KeyError`` -- schema violations.

Audit relevance:
    Every successful call emits a ``SCHEDULING_CONFIG_TRACE`` log entry with
    the source path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from ledger_config.loader import load_yaml_file, parse_scheduling_config
from ledger_config.schema import SchedulingConfig, SchedulingSettings, SeriesSeedDef
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "scheduling.yaml"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SchedulingConfig",
    "SchedulingSettings",
    "SeriesSeedDef",
    "get_scheduling_config",
]


def get_scheduling_config(path: Path | str | None = None) -> SchedulingConfig:
    """Load and parse the scheduling configuration.

    Args:
        path: YAML file to read.  Defaults to the packaged
            ``defaults/scheduling.yaml``.

    Returns:
        Frozen ``SchedulingConfig``.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_scheduling_config(load_yaml_file(source))
    _logger.info(
        "SCHEDULING_CONFIG_TRACE",
        extra={
            "trace_type": "SCHEDULING_CONFIG_TRACE",
            "source": str(source),
            "checksum": config.checksum,
            "seed_count": len(config.seeds),
            "strict_frequency_parsing": config.settings.strict_frequency_parsing,
        },
    )
    return config
