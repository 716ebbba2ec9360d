"""Machining settings, controller enums and job-file loading."""

from cam_core.configs.loader import (
    ConfigError,
    ControllerDialect,
    JobSpec,
    MachiningSettings,
    MillingDirection,
    OffsetMode,
    OperationType,
    load_job,
    load_settings,
)

__all__ = [
    "ConfigError",
    "ControllerDialect",
    "JobSpec",
    "MachiningSettings",
    "MillingDirection",
    "OffsetMode",
    "OperationType",
    "load_job",
    "load_settings",
]
