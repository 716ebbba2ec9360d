"""G-code generator -- toolpath IR operations to program text.

Everything dialect-specific is delegated to :mod:`cam_core.gcode.dialects`;
this module only walks the IR, tracks the tool position and frames the
program.

Program layout::

    <header>                       dialect start block, tool call, spindle
    ;----------------------------
    ; <operation label>            one block per element
    ; <notes>
    ; Z level ...                  one group per Z-level
    G0 X.. Y.. Z..                 rapid above the start point
    G1 Z.. F<plunge>               plunge
    G1 / G2 / G3 ... F<feed>       cut
    G0 Z..                         retract clear of the level
    G0 Z<safe>                     retract to safe height between elements
    <footer>                       safe height, M9, M5, M30

Position tracking:
    Heidenhain circular moves need the absolute arc centre, which is the
    arc *start* plus ``(I, J)``.  The generator remembers the last
    commanded X/Y so every arc is emitted with its true start point.
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Iterable

from cam_core.configs.loader import ControllerDialect, MachiningSettings
from cam_core.gcode import dialects
from cam_core.gcode.dialects import SEPARATOR, GCodeError
from cam_core.job_ir.operations import (
    ArcMove,
    Comment,
    Linear,
    Move,
    Rapid,
    ToolpathOperation,
)

logger = logging.getLogger(__name__)

__all__ = ["GCodeError", "GCodeGenerator", "render_moves", "render_operations"]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class GCodeGenerator:
    """Convert toolpath operations to G-code.

    Parameters
    ----------
    settings : MachiningSettings
        Resolved job settings.  Header, footer and the between-element
        retract height are taken from here.
    dialect : ControllerDialect | str | None
        Target controller; ``None`` uses ``settings.dialect``.
    """

    def __init__(
        self,
        settings: MachiningSettings,
        dialect: ControllerDialect | str | None = None,
    ) -> None:
        self._settings = settings
        self._dialect = ControllerDialect(dialect) if dialect is not None else settings.dialect
        self._x: float | None = None
        self._y: float | None = None

    @property
    def dialect(self) -> ControllerDialect:
        return self._dialect

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, operations: Iterable[ToolpathOperation]) -> str:
        """Generate a complete program.

        Parameters
        ----------
        operations : Iterable[ToolpathOperation]
            Operations in machining order.

        Returns
        -------
        str
            Header, one block per operation, footer; newline terminated.

        Raises
        ------
        GCodeError
            If a move cannot be expressed (e.g. a rapid with no axis
            word).
        """
        buf = StringIO()
        self._reset_state()
        self._write_header(buf)
        count = 0
        for op in operations:
            self._write_operation(op, buf)
            count += 1
        self._write_footer(buf)
        logger.info(
            "Generated %s program: %d operation(s)", self._dialect.value, count,
        )
        return buf.getvalue()

    def generate_body(self, operations: Iterable[ToolpathOperation]) -> str:
        """Operation blocks only, without header and footer."""
        buf = StringIO()
        self._reset_state()
        for op in operations:
            self._write_operation(op, buf)
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Internal: framing
    # ------------------------------------------------------------------

    def _reset_state(self) -> None:
        self._x = None
        self._y = None

    def _write_header(self, buf: StringIO) -> None:
        buf.write(dialects.header(self._dialect, self._settings) + "\n")

    def _write_footer(self, buf: StringIO) -> None:
        buf.write("\n" + dialects.footer(self._dialect, self._settings) + "\n")

    def _write_operation(self, op: ToolpathOperation, buf: StringIO) -> None:
        buf.write("\n" + SEPARATOR + "\n")
        buf.write(dialects.comment(op.label) + "\n")
        for note in op.notes:
            buf.write(dialects.comment(note) + "\n")
        for level in op.levels:
            for move in level.moves:
                self._generate_move(move, buf)
        if op.levels:
            buf.write(
                dialects.rapid_move(
                    self._dialect, z=self._settings.safe_height,
                    comment="Retract to safe height",
                ) + "\n"
            )

    # ------------------------------------------------------------------
    # Internal: per-move dispatch
    # ------------------------------------------------------------------

    def _generate_move(self, move: Move, buf: StringIO) -> None:
        if isinstance(move, Comment):
            buf.write(dialects.comment(move.text) + "\n")
        elif isinstance(move, Rapid):
            self._gen_rapid(move, buf)
        elif isinstance(move, Linear):
            self._gen_linear(move, buf)
        elif isinstance(move, ArcMove):
            self._gen_arc(move, buf)
        else:
            logger.warning("Unsupported move: %s", type(move).__name__)

    def _track(self, x: float | None, y: float | None) -> None:
        if x is not None:
            self._x = x
        if y is not None:
            self._y = y

    def _gen_rapid(self, move: Rapid, buf: StringIO) -> None:
        buf.write(
            dialects.rapid_move(self._dialect, move.x, move.y, move.z, move.comment) + "\n"
        )
        self._track(move.x, move.y)

    def _gen_linear(self, move: Linear, buf: StringIO) -> None:
        buf.write(
            dialects.linear_move(
                self._dialect, move.x, move.y, move.z, move.feed, move.comment,
            ) + "\n"
        )
        self._track(move.x, move.y)

    def _gen_arc(self, move: ArcMove, buf: StringIO) -> None:
        start = None
        if self._x is not None and self._y is not None:
            start = (self._x, self._y)
        buf.write(
            dialects.circular_move(
                self._dialect, move.x, move.y, move.i, move.j,
                clockwise=move.clockwise, feed=move.feed,
                comment=move.comment, start=start,
            ) + "\n"
        )
        self._track(move.x, move.y)


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------


def render_operations(
    operations: Iterable[ToolpathOperation],
    settings: MachiningSettings,
    dialect: ControllerDialect | str | None = None,
) -> str:
    """Operation blocks without header/footer (see :meth:`GCodeGenerator.generate_body`)."""
    return GCodeGenerator(settings, dialect).generate_body(operations)


def render_moves(moves: Iterable[Move], dialect: ControllerDialect | str) -> str:
    """Emit a bare move list, one line per move (two for Heidenhain arcs).

    Raises
    ------
    GCodeError
        If a move cannot be expressed in *dialect*.
    """
    gen = GCodeGenerator(MachiningSettings(), dialect)
    buf = StringIO()
    for move in moves:
        gen._generate_move(move, buf)
    return buf.getvalue()
