"""Element model -- the parametric shapes coming from the CAD document.

Every element kind is its own immutable pydantic model, tagged by the
``type`` field.  :data:`Element` is the closed union of all of them; code
that handles elements dispatches on the concrete class, never on the raw
``type`` string.

Documents use camelCase keys (``tubeRadius``, ``startAngle``); the models
use snake_case attributes and accept either spelling.

Defaults
--------
Absent numeric fields default to ``0`` unless the field docs say
otherwise.  Kind-specific defaults that the toolpath code relies on
(prism ``sides=6``, triangle ``size=50``, text ``font_size=10`` ...) are
declared here, once, instead of being re-guessed by every generator.

Positions
---------
``x``, ``y``, ``z`` is the element centre in document millimetres.  Children
of a component are positioned **relative to the component centre**.

Unknown kinds
-------------
A mapping whose ``type`` is not a known kind parses to
:class:`UnknownElement`, which keeps the raw mapping so the geometry
extractor can still estimate a bounding box from any size-like field.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ElementError(ValueError):
    """Raised when an element mapping cannot be parsed."""

    pass


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class ElementModel(BaseModel):
    """Fields shared by every element kind."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )

    id: str | None = None
    name: str | None = None
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def kind(self) -> str:
        """Element kind as written in the document."""
        return getattr(self, "type")

    @property
    def label(self) -> str:
        """Human-readable identifier for comments and log lines."""
        return self.name or self.id or self.kind

    def moved(self, dx: float, dy: float, dz: float) -> "ElementModel":
        """Return a copy translated by ``(dx, dy, dz)``."""
        return self.model_copy(
            update={"x": self.x + dx, "y": self.y + dy, "z": self.z + dz}
        )


# ---------------------------------------------------------------------------
# 2D shapes  (cut from z down to z - depth)
# ---------------------------------------------------------------------------


class Rectangle(ElementModel):
    type: Literal["rectangle"] = "rectangle"
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0


class Circle(ElementModel):
    type: Literal["circle"] = "circle"
    radius: float = 0.0
    depth: float = 0.0


class Polygon(ElementModel):
    """Regular polygon; the first vertex sits on the +X axis."""

    type: Literal["polygon"] = "polygon"
    sides: int = Field(6, ge=3)
    radius: float = 0.0
    depth: float = 0.0


class Line(ElementModel):
    """Straight cut between two absolute end points."""

    type: Literal["line"] = "line"
    x1: float = 0.0
    y1: float = 0.0
    z1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    z2: float = 0.0
    depth: float = 0.0

    def moved(self, dx: float, dy: float, dz: float) -> "Line":
        return self.model_copy(update={
            "x": self.x + dx, "y": self.y + dy, "z": self.z + dz,
            "x1": self.x1 + dx, "y1": self.y1 + dy, "z1": self.z1 + dz,
            "x2": self.x2 + dx, "y2": self.y2 + dy, "z2": self.z2 + dz,
        })


class Arc(ElementModel):
    """Circular arc; no angles means a full circle.

    Angles are in degrees, counter-clockwise from +X.  ``end_angle <
    start_angle`` wraps by +360.
    """

    type: Literal["arc"] = "arc"
    radius: float = 25.0
    start_angle: float | None = None
    end_angle: float | None = None
    depth: float = 0.0


class Ellipse(ElementModel):
    """Ellipse or elliptical arc.  ``radius`` fills a missing axis radius."""

    type: Literal["ellipse"] = "ellipse"
    radius: float = 25.0
    radius_x: float | None = None
    radius_y: float | None = None
    start_angle: float | None = None
    end_angle: float | None = None
    depth: float = 0.0

    @property
    def rx(self) -> float:
        return self.radius_x if self.radius_x else self.radius

    @property
    def ry(self) -> float:
        return self.radius_y if self.radius_y else self.radius


class Triangle(ElementModel):
    """Explicit three points, or an equilateral triangle of ``size``.

    Explicit points are absolute document coordinates.
    """

    type: Literal["triangle"] = "triangle"
    points: tuple[tuple[float, float], ...] | None = None
    size: float = 50.0
    depth: float = 0.0

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, v: Any) -> Any:
        # Documents store points as {"x": .., "y": ..} mappings.
        if v is None:
            return v
        if isinstance(v, (str, bytes)) or not hasattr(v, "__iter__"):
            raise ValueError(f"points must be a sequence, got {type(v).__name__}")
        points = []
        for p in v:
            if isinstance(p, dict):
                if "x" not in p or "y" not in p:
                    raise ValueError(f"point mapping needs 'x' and 'y': {p!r}")
                p = (p["x"], p["y"])
            points.append(p)
        return points

    def moved(self, dx: float, dy: float, dz: float) -> "Triangle":
        update: dict[str, Any] = {"x": self.x + dx, "y": self.y + dy, "z": self.z + dz}
        if self.points:
            update["points"] = tuple((px + dx, py + dy) for px, py in self.points)
        return self.model_copy(update=update)


class Text(ElementModel):
    """Engraved text, machined as its bounding box plus a zig-zag fill."""

    type: Literal["text"] = "text"
    text: str = "Text"
    font_size: float = Field(
        10.0, validation_alias=AliasChoices("fontSize", "height", "font_size")
    )
    width: float | None = None
    depth: float = 0.0

    @property
    def text_width(self) -> float:
        if self.width:
            return self.width
        return len(self.text) * self.font_size * 0.6


# ---------------------------------------------------------------------------
# Solids  (z is the centre of the solid unless noted)
# ---------------------------------------------------------------------------


class Box(ElementModel):
    """Axis-aligned box.  A ``cube`` may give only ``size``."""

    type: Literal["box", "cube"] = "box"
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    size: float = 0.0

    @property
    def dims(self) -> tuple[float, float, float]:
        return (
            self.width or self.size,
            self.height or self.size,
            self.depth or self.size,
        )


class Sphere(ElementModel):
    type: Literal["sphere"] = "sphere"
    radius: float = 0.0


class Cylinder(ElementModel):
    type: Literal["cylinder"] = "cylinder"
    radius: float = 0.0
    height: float = 0.0


class Cone(ElementModel):
    """Cone with its base at the bottom.  ``base_radius`` overrides ``radius``."""

    type: Literal["cone"] = "cone"
    radius: float = 0.0
    base_radius: float | None = None
    height: float = 0.0

    @property
    def r_base(self) -> float:
        return self.base_radius if self.base_radius else self.radius


class Torus(ElementModel):
    """Torus lying in the XY plane.  ``tube_radius`` defaults to radius / 4."""

    type: Literal["torus"] = "torus"
    radius: float = 0.0
    tube_radius: float | None = None

    @property
    def tube(self) -> float:
        if self.tube_radius:
            return self.tube_radius
        return self.radius / 4


class Pyramid(ElementModel):
    """Rectangular-base pyramid.  ``base_depth`` defaults to ``base_width``."""

    type: Literal["pyramid"] = "pyramid"
    base_width: float = 0.0
    base_depth: float | None = None
    height: float = 0.0

    @property
    def base(self) -> tuple[float, float]:
        return self.base_width, self.base_depth or self.base_width


class Prism(ElementModel):
    type: Literal["prism"] = "prism"
    radius: float = 25.0
    height: float = 0.0
    sides: int = Field(6, ge=3)


class Hemisphere(ElementModel):
    """Half sphere.  ``z`` is the centre of the flat face."""

    type: Literal["hemisphere"] = "hemisphere"
    radius: float = 0.0
    direction: Literal["up", "down"] = "up"


class Ellipsoid(ElementModel):
    type: Literal["ellipsoid"] = "ellipsoid"
    radius_x: float = 0.0
    radius_y: float = 0.0
    radius_z: float = 0.0


class Capsule(ElementModel):
    """Cylinder with hemispherical caps.

    ``height`` is the overall length along ``orientation`` including both
    caps; it is never shorter than ``2 * radius``.
    """

    type: Literal["capsule"] = "capsule"
    radius: float = 25.0
    height: float = 100.0
    orientation: Literal["x", "y", "z"] = "z"

    @property
    def half_body(self) -> float:
        """Half length of the cylindrical body between the caps."""
        return max(0.0, (self.height - 2 * self.radius) / 2)


class Mesh(ElementModel):
    """Triangle mesh in element-local coordinates."""

    type: Literal["mesh"] = "mesh"
    vertices: tuple[tuple[float, float, float], ...] = ()
    faces: tuple[tuple[int, int, int], ...] = ()


class Component(ElementModel):
    """Composite of owned child elements (``group`` is an alias).

    Explicit ``width``/``height``/``depth`` override the bounding box that
    would otherwise be computed from the children.
    """

    type: Literal["component", "group"] = "component"
    width: float | None = None
    height: float | None = None
    depth: float | None = None
    children: tuple[ElementModel, ...] = Field(
        default=(), validation_alias=AliasChoices("children", "elements")
    )

    @field_validator("children", mode="before")
    @classmethod
    def _parse_children(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(
            child if isinstance(child, ElementModel) else parse_element(child)
            for child in v
        )


class UnknownElement(ElementModel):
    """Element of a kind this package does not model.  ``raw`` keeps the input."""

    type: str
    raw: dict[str, Any] = Field(default_factory=dict)

    def number(self, *keys: str) -> float:
        """First positive numeric value among *keys* in ``raw``, else 0."""
        for key in keys:
            value = self.raw.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
                return float(value)
        return 0.0


# ---------------------------------------------------------------------------
# Closed union + parsing
# ---------------------------------------------------------------------------


KnownElement = Annotated[
    Union[
        Rectangle, Circle, Polygon, Line, Arc, Ellipse, Triangle, Text,
        Box, Sphere, Cylinder, Cone, Torus, Pyramid, Prism, Hemisphere,
        Ellipsoid, Capsule, Mesh, Component,
    ],
    Field(discriminator="type"),
]

Element = Union[
    Rectangle, Circle, Polygon, Line, Arc, Ellipse, Triangle, Text,
    Box, Sphere, Cylinder, Cone, Torus, Pyramid, Prism, Hemisphere,
    Ellipsoid, Capsule, Mesh, Component, UnknownElement,
]
"""Every element kind, including the unknown-kind fallback."""

KNOWN_TYPES: frozenset[str] = frozenset({
    "rectangle", "circle", "polygon", "line", "arc", "ellipse", "triangle",
    "text", "box", "cube", "sphere", "cylinder", "cone", "torus", "pyramid",
    "prism", "hemisphere", "ellipsoid", "capsule", "mesh", "component",
    "group",
})

_known_adapter: TypeAdapter[Any] = TypeAdapter(KnownElement)


def parse_element(data: dict[str, Any]) -> Element:
    """Build an element from a document mapping.

    Parameters
    ----------
    data : dict
        Element record with at least a ``type`` key.

    Returns
    -------
    Element
        Concrete element model, or :class:`UnknownElement` for an
        unrecognised ``type``.

    Raises
    ------
    ElementError
        If *data* is not a mapping, has no ``type``, or a known kind has
        invalid field values.
    """
    if not isinstance(data, dict):
        raise ElementError(f"Element must be a mapping, got {type(data).__name__}")
    kind = data.get("type")
    if not isinstance(kind, str) or not kind:
        raise ElementError(f"Element is missing 'type': {data!r}")

    kind = kind.lower()
    if kind not in KNOWN_TYPES:
        logger.warning("Unknown element kind %r, using generic fallback", kind)
        fields = {k: data[k] for k in ("id", "name", "x", "y", "z") if k in data}
        try:
            return UnknownElement(type=kind, raw=dict(data), **fields)
        except ValidationError as exc:
            raise ElementError(f"Invalid {kind!r} element: {exc}") from exc

    try:
        return _known_adapter.validate_python({**data, "type": kind})
    except ValidationError as exc:
        raise ElementError(f"Invalid {kind!r} element: {exc}") from exc
    except (TypeError, KeyError) as exc:
        raise ElementError(f"Invalid {kind!r} element: {exc!r}") from exc


def parse_elements(items: list[dict[str, Any]]) -> list[Element]:
    """Parse a list of element mappings in order."""
    return [parse_element(item) for item in items]
