"""Per-controller G-code emitters.

Pure functions, each parameterized by :class:`ControllerDialect`, that
turn one motion or cycle into program text.  Nothing here keeps state:
the program generator, the dialect converter and the tests all call the
same functions.

Syntax summary::

                    Fanuc / Generic              Heidenhain
    rapid           G0 X.. Y.. Z..               L X.. Y.. Z.. R0 FMAX
    linear          G1 X.. Y.. Z.. F..           L X.. Y.. Z.. F.. R0
    arc             G2|G3 X.. Y.. I.. J.. F..    CC X.. Y..  /  C X.. Y.. DR-|DR+ F..
    drill           G81 | G82 .. P<ms>           CYCL DEF 200 DRILLING + Q-block
    comment         ; text                       ; text

Every coordinate and feed is written with three decimals.  Returned
strings never carry a trailing newline; multi-line results are joined
with ``\\n``.
"""

from __future__ import annotations

import logging
from typing import Literal, Sequence

from cam_core.configs.loader import ControllerDialect, MachiningSettings

logger = logging.getLogger(__name__)

SEPARATOR = ";" + "-" * 60
HIGH_SPEED_TOLERANCE = 0.01


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def fmt(value: float) -> str:
    """Three-decimal number; negative zero is written as ``0.000``."""
    text = f"{value:.3f}"
    return "0.000" if text == "-0.000" else text


def _words(**axes: float | None) -> str:
    return " ".join(f"{k}{fmt(v)}" for k, v in axes.items() if v is not None)


def _with_comment(line: str, comment: str | None) -> str:
    return f"{line} ; {comment}" if comment else line


def _dialect(dialect: ControllerDialect | str) -> ControllerDialect:
    return dialect if isinstance(dialect, ControllerDialect) else ControllerDialect(dialect)


def comment(text: str, indent: int = 0) -> str:
    """``; text`` with optional leading spaces."""
    return f"{' ' * indent}; {text}"


# ---------------------------------------------------------------------------
# Program frame
# ---------------------------------------------------------------------------


def header(dialect: ControllerDialect | str, settings: MachiningSettings) -> str:
    """Program start: identification, modal setup, tool call, spindle.

    Parameters
    ----------
    dialect : ControllerDialect | str
        Target controller.
    settings : MachiningSettings
        Program name, tool number, work offset, units, tolerance, coolant,
        spindle speed and path mode (G64 blending or G61 exact stop) are
        read from here.
    """
    d = _dialect(dialect)
    s = settings
    lines: list[str] = []

    if s.initial_comment:
        lines += [comment(s.initial_comment), SEPARATOR]

    if d is ControllerDialect.FANUC:
        lines.append(SEPARATOR)
        if s.program_name:
            lines.append(f"O{s.program_name}")
        lines.append("G90 ; Absolute positioning")
        lines.append("G21 ; Metric units" if s.metric else "G20 ; Imperial units")
        lines.append("G17 ; XY plane selection")
        if s.work_offset is not None:
            lines.append(f"G{53 + s.work_offset} ; Work offset")
        else:
            lines.append("G54 ; Default work offset")
        lines.append(f"T{s.tool_number} M6 ; Select tool {s.tool_number}")

    elif d is ControllerDialect.HEIDENHAIN:
        unit = "MM" if s.metric else "INCH"
        lines.append(SEPARATOR)
        if s.program_name:
            lines.append(f"BEGIN PGM {s.program_name} {unit}")
        lines.append("G71 ; Metric units" if s.metric else "G70 ; Imperial units")
        lines.append("G90 ; Absolute coordinates")
        lines.append(f"TOOL CALL {s.tool_number} Z ; Call tool {s.tool_number}")
        tolerance = s.tolerance
        if tolerance is None and s.high_speed_mode:
            tolerance = HIGH_SPEED_TOLERANCE
        if tolerance is not None:
            lines.append("CYCL DEF 32.0 TOLERANCE")
            lines.append(f"CYCL DEF 32.1 T{fmt(tolerance)}")

    else:
        lines.append(SEPARATOR)
        lines.append("G90 ; Absolute positioning")
        lines.append("G21 ; Metric units" if s.metric else "G20 ; Imperial units")
        lines.append(f"T{s.tool_number} M6 ; Select tool {s.tool_number}")

    if s.coolant:
        lines.append("M8 ; Coolant on")
    lines.append(f"M3 S{s.spindle_speed} ; Start spindle")

    # Heidenhain blends through cycle 32 above; exact stop is its default.
    if d is not ControllerDialect.HEIDENHAIN:
        if s.high_speed_mode:
            lines.append(
                f"G64 P{HIGH_SPEED_TOLERANCE:g} ; Path blending with tolerance of "
                f"{HIGH_SPEED_TOLERANCE:g}mm"
            )
        elif s.exact_stop:
            lines.append("G61 ; Exact stop mode")
    return "\n".join(lines)


def footer(dialect: ControllerDialect | str, settings: MachiningSettings) -> str:
    """Program end: retract to safe height, coolant off, spindle stop, end."""
    d = _dialect(dialect)
    lines = [
        rapid_move(d, z=settings.safe_height, comment="Move to safe height"),
        "M9 ; Coolant off",
        "M5 ; Stop spindle",
        "M30 ; Program end",
    ]
    if d is ControllerDialect.FANUC:
        lines.append("%")
    elif d is ControllerDialect.HEIDENHAIN and settings.program_name:
        unit = "MM" if settings.metric else "INCH"
        lines.append(f"END PGM {settings.program_name} {unit}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------


def rapid_move(
    dialect: ControllerDialect | str,
    x: float | None = None,
    y: float | None = None,
    z: float | None = None,
    comment: str | None = None,
) -> str:
    """Rapid positioning move.

    Raises
    ------
    GCodeError
        If no axis is given.
    """
    if x is None and y is None and z is None:
        raise GCodeError("Rapid move needs at least one axis")
    words = _words(X=x, Y=y, Z=z)
    if _dialect(dialect) is ControllerDialect.HEIDENHAIN:
        return _with_comment(f"L {words} R0 FMAX", comment)
    return _with_comment(f"G0 {words}", comment)


def linear_move(
    dialect: ControllerDialect | str,
    x: float | None = None,
    y: float | None = None,
    z: float | None = None,
    feed: float | None = None,
    comment: str | None = None,
) -> str:
    """Linear cutting move.  ``feed=None`` keeps the modal feed
    (Heidenhain: ``FMAX``).

    Raises
    ------
    GCodeError
        If no axis is given.
    """
    if x is None and y is None and z is None:
        raise GCodeError("Linear move needs at least one axis")
    words = _words(X=x, Y=y, Z=z)
    if _dialect(dialect) is ControllerDialect.HEIDENHAIN:
        f_word = f"F{fmt(feed)}" if feed is not None else "FMAX"
        return _with_comment(f"L {words} {f_word} R0", comment)
    if feed is not None:
        words += f" F{fmt(feed)}"
    return _with_comment(f"G1 {words}", comment)


def circular_move(
    dialect: ControllerDialect | str,
    end_x: float,
    end_y: float,
    center_i: float,
    center_j: float,
    clockwise: bool = True,
    feed: float | None = None,
    comment: str | None = None,
    start: tuple[float, float] | None = None,
) -> str:
    """Circular move in the XY plane.

    Parameters
    ----------
    end_x, end_y : float
        Arc end point.
    center_i, center_j : float
        Centre offset from the arc **start** point.
    clockwise : bool
        G2 / ``DR-`` when True, G3 / ``DR+`` otherwise.
    feed : float | None
        Cutting feed; ``None`` keeps the modal feed (Heidenhain ``FMAX``).
    start : tuple[float, float] | None
        Arc start point.  Heidenhain needs the absolute centre (``CC``);
        without *start* the arc is taken to be a full circle, whose
        start equals its end.
    """
    if _dialect(dialect) is ControllerDialect.HEIDENHAIN:
        sx, sy = start if start is not None else (end_x, end_y)
        cc = f"CC X{fmt(sx + center_i)} Y{fmt(sy + center_j)}"
        f_word = f"F{fmt(feed)}" if feed is not None else "FMAX"
        c = f"C X{fmt(end_x)} Y{fmt(end_y)} DR{'-' if clockwise else '+'} {f_word}"
        return cc + "\n" + _with_comment(c, comment)

    line = (
        f"{'G2' if clockwise else 'G3'} X{fmt(end_x)} Y{fmt(end_y)}"
        f" I{fmt(center_i)} J{fmt(center_j)}"
    )
    if feed is not None:
        line += f" F{fmt(feed)}"
    return _with_comment(line, comment)


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


def drill_cycle(
    dialect: ControllerDialect | str,
    x: float,
    y: float,
    z: float,
    retract: float,
    feed: float,
    dwell_ms: float = 0.0,
) -> str:
    """Single-hole drilling cycle.

    Fanuc / Generic position above the hole, then use ``G82`` (dwell ``P``
    in milliseconds) when *dwell_ms* > 0 and ``G81`` otherwise.  Heidenhain
    defines ``CYCL DEF 200 DRILLING`` and calls it with ``M99`` at the
    hole position.
    """
    if _dialect(dialect) is ControllerDialect.HEIDENHAIN:
        dwell_s = dwell_ms / 1000.0 if dwell_ms > 0 else 0.0
        return "\n".join([
            "CYCL DEF 200 DRILLING",
            f"  Q200={fmt(retract)} ; Set-up clearance",
            f"  Q201={fmt(-abs(z))} ; Depth",
            f"  Q206={fmt(feed)} ; Feed rate for plunging",
            f"  Q202={fmt(abs(z))} ; Infeed depth",
            "  Q210=0 ; Dwell time at top",
            f"  Q211={fmt(dwell_s)} ; Dwell time at bottom",
            f"L X{fmt(x)} Y{fmt(y)} R0 FMAX M99",
        ])

    lines = [
        rapid_move(dialect, x=x, y=y),
        rapid_move(dialect, z=retract),
    ]
    if dwell_ms > 0:
        lines.append(
            f"G82 Z{fmt(z)} R{fmt(retract)} F{fmt(feed)} P{int(round(dwell_ms))}"
        )
    else:
        lines.append(f"G81 Z{fmt(z)} R{fmt(retract)} F{fmt(feed)}")
    lines.append("G80 ; Cancel canned cycle")
    return "\n".join(lines)


def contour_cycle(
    dialect: ControllerDialect | str,
    points: Sequence[tuple[float, float]],
    z: float,
    safe_z: float,
    feed: float,
    plunge_feed: float,
    compensation: Literal["left", "right"] | None = None,
    tool_radius: float | None = None,
) -> str:
    """Profile along *points* at depth *z*, closed back to the start.

    With *compensation* the controller offsets the path itself: ``G41``/
    ``G42 D<r>`` (Heidenhain ``RL``/``RR``), cancelled with ``G40``
    (Heidenhain ``L R0``) before the retract.  Fewer than two points
    yield a single explanatory comment.
    """
    d = _dialect(dialect)
    if len(points) < 2:
        return comment("Contour requires at least 2 points")

    (x0, y0) = points[0]
    lines = [
        rapid_move(d, x0, y0, safe_z, comment="Move to start position"),
        linear_move(d, z=z, feed=plunge_feed, comment="Plunge to depth"),
    ]

    if compensation is not None:
        side = "left" if compensation == "left" else "right"
        if d is ControllerDialect.HEIDENHAIN:
            rl = "RL" if side == "left" else "RR"
            lines.append(
                f"L X{fmt(x0)} Y{fmt(y0)} {rl} F{fmt(feed)}"
                f" ; Tool radius compensation {side}"
            )
        else:
            if tool_radius is None:
                raise GCodeError("Radius compensation needs tool_radius")
            code = "G41" if side == "left" else "G42"
            lines.append(f"{code} D{fmt(tool_radius)} ; Tool radius compensation {side}")

    for n, (px, py) in enumerate(points[1:], start=2):
        lines.append(linear_move(d, px, py, feed=feed, comment=f"Move to point {n}"))

    if tuple(points[0]) != tuple(points[-1]):
        lines.append(linear_move(d, x0, y0, feed=feed, comment="Close contour"))

    if compensation is not None:
        if d is ControllerDialect.HEIDENHAIN:
            lines.append("L R0 ; Cancel tool radius compensation")
        else:
            lines.append("G40 ; Cancel tool radius compensation")

    lines.append(rapid_move(d, z=safe_z, comment="Retract to safe height"))
    return "\n".join(lines)
