"""Machining settings and job-file loading.

``machining.yaml`` (shipped beside this module) holds the shop defaults:
tool, feeds, spindle, target controller, program options.  A job file
lists the elements to machine and may override any of those defaults.

Feed rates are **mm/min** throughout -- the G-code ``F`` word takes them
unchanged.  Lengths are millimetres unless ``metric`` is false, in which
case the numbers are passed through as inches.

``depth``, ``stepdown`` and ``plungerate`` may be left unset; the
parameter resolver fills them from the element geometry before any
toolpath is generated.

Usage::

    from cam_core.configs.loader import load_settings, load_job
    settings = load_settings()                          # shipped defaults
    settings = load_settings("/shop/router.yaml")       # explicit path
    job = load_job("jobs/bracket.yaml", base=settings)  # elements + overrides
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel, to_snake

from cam_core.utils.fs import load_structured, load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ControllerDialect(str, Enum):
    """Target controller syntax."""

    FANUC = "fanuc"
    HEIDENHAIN = "heidenhain"
    GENERIC = "generic"


class OffsetMode(str, Enum):
    """Where the tool centre runs relative to the nominal boundary."""

    INSIDE = "inside"
    OUTSIDE = "outside"
    CENTER = "center"


class MillingDirection(str, Enum):
    """Climb cuts counter-clockwise around a boundary; conventional reverses it."""

    CLIMB = "climb"
    CONVENTIONAL = "conventional"


class OperationType(str, Enum):
    """Machining strategy recorded for an element."""

    CONTOUR = "contour"
    POCKET = "pocket"
    PROFILE = "profile"


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class MachiningSettings(BaseModel):
    """Resolved machining parameters for one job (or one element).

    All lengths in mm (or inches when ``metric`` is false), feeds in
    units/min, spindle speed in RPM.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )

    # -- tool / cut ---------------------------------------------------------
    tool_diameter: float = Field(6.0, gt=0.0, description="Cutter diameter")
    depth: float | None = Field(None, gt=0.0, description="Total cut depth")
    stepdown: float | None = Field(None, gt=0.0, description="Depth per Z-level")
    feedrate: float = Field(1000.0, gt=0.0, description="Cutting feed")
    plungerate: float | None = Field(None, gt=0.0, description="Plunge feed")
    offset: OffsetMode = OffsetMode.CENTER
    direction: MillingDirection = MillingDirection.CLIMB
    flutes: int = Field(2, ge=1, description="Cutter flute count")
    stepover: float = Field(0.4, gt=0.0, le=1.0, description="Stepover as a fraction of D")
    operation_type: OperationType | None = None

    # -- machine ------------------------------------------------------------
    safe_height: float = Field(25.0, description="Retract Z for rapids")
    spindle_speed: int = Field(12000, gt=0, description="Spindle RPM")
    coolant: bool = True
    dialect: ControllerDialect = Field(
        ControllerDialect.FANUC,
        validation_alias="controller",
    )

    # -- program ------------------------------------------------------------
    program_name: str = "1000"
    tool_number: int = Field(1, ge=1)
    work_offset: int | None = Field(None, ge=1, le=6, description="1 → G54 ... 6 → G59")
    metric: bool = True
    tolerance: float | None = Field(None, gt=0.0, description="Heidenhain cycle 32 tolerance")
    initial_comment: str | None = None
    high_speed_mode: bool = Field(False, description="G64 path blending")
    exact_stop: bool = Field(False, description="G61 exact stop; ignored in high-speed mode")

    @model_validator(mode="before")
    @classmethod
    def _accept_dialect_key(cls, data: Any) -> Any:
        # Both ``dialect`` and the application's ``controller`` key are accepted.
        # ``controller`` wins when both are present.
        if isinstance(data, dict) and "dialect" in data:
            data = dict(data)
            dialect = data.pop("dialect")
            data.setdefault("controller", dialect)
        return data

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2.0

    @property
    def is_resolved(self) -> bool:
        """True when every parameter the generators need is set."""
        return None not in (self.depth, self.stepdown, self.plungerate)

    def with_overrides(self, **overrides: Any) -> "MachiningSettings":
        """Return a validated copy with *overrides* applied.

        Keys may be snake_case or camelCase.

        Raises
        ------
        pydantic.ValidationError
            If an override is out of range.
        """
        data = self.model_dump()
        # Dumped keys are field names; bring camelCase overrides in line.
        data.update({to_snake(k): v for k, v in overrides.items()})
        return MachiningSettings.model_validate(data)


# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JobSpec:
    """A job file after loading: raw element mappings plus settings."""

    name: str
    elements: tuple[dict[str, Any], ...]
    settings: MachiningSettings


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _default_settings_path() -> Path:
    return Path(__file__).parent / "machining.yaml"


def _build_settings(data: dict[str, Any], source: Path | str) -> MachiningSettings:
    try:
        return MachiningSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid machining settings in {source}: {exc}") from exc


def load_settings(path: str | Path | None = None) -> MachiningSettings:
    """Load and validate machining settings from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to a settings file.  ``None`` loads ``machining.yaml``
        shipped alongside this module.

    Returns
    -------
    MachiningSettings
        Validated, frozen settings.

    Raises
    ------
    ConfigError
        If the file is empty, lacks the ``machining`` section, or a value
        fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = _default_settings_path() if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading machining settings from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    try:
        section = data["machining"]
    except (KeyError, TypeError) as exc:
        raise ConfigError(
            f"Missing required configuration key: 'machining' in {path}"
        ) from exc
    if not isinstance(section, dict):
        raise ConfigError(f"'machining' must be a mapping in {path}")

    settings = _build_settings(section, path)
    logger.info("Machining settings loaded successfully")
    return settings


def load_job(
    path: str | Path,
    base: MachiningSettings | None = None,
) -> JobSpec:
    """Load a job file (YAML or JSON).

    The file holds an ``elements`` list and an optional ``settings``
    mapping whose keys override *base* (the shipped defaults when
    ``None``).

    Raises
    ------
    ConfigError
        If ``elements`` is missing or not a list, or an override is
        invalid.
    FileNotFoundError
        If *path* does not exist.
    """
    path = Path(path)
    logger.info("Loading job from %s", path)

    try:
        data = load_structured(path)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(str(exc)) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Job file must contain a mapping: {path}")

    elements = data.get("elements")
    if not isinstance(elements, list):
        raise ConfigError(f"Job file needs an 'elements' list: {path}")

    if base is None:
        base = load_settings()

    overrides = data.get("settings") or {}
    if not isinstance(overrides, dict):
        raise ConfigError(f"'settings' must be a mapping in {path}")

    try:
        settings = base.with_overrides(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings override in {path}: {exc}") from exc

    job = JobSpec(
        name=str(data.get("name", path.stem)),
        elements=tuple(elements),
        settings=settings,
    )
    logger.info("Job %r: %d element(s)", job.name, len(job.elements))
    return job
