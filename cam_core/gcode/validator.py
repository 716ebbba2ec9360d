"""Static safety scan of a G-code program.

Rules (each produces at most the warnings listed, in this order):

1. A rapid move to Z above :data:`SAFE_Z_THRESHOLD` must exist (the tool
   is returned to a safe height somewhere).
2. The spindle must be stopped (``M5``).
3. Coolant must be switched off (``M9``).
4. No rapid move may drop Z by more than :data:`MAX_RAPID_DROP` relative
   to the previous rapid that set Z -- one warning per offending line.

Rapids are ``G0`` lines or Heidenhain ``L ... FMAX`` lines.  The scan is
stateless between calls, deterministic, and never raises.
"""

from __future__ import annotations

import logging

from cam_core.gcode.parser import Command, parse_line

logger = logging.getLogger(__name__)

SAFE_Z_THRESHOLD = 10.0
MAX_RAPID_DROP = 5.0


def _has_code(cmd: Command, letter: str, number: int) -> bool:
    return (cmd.letter == letter and cmd.number == number) or cmd.has_word(letter, number)


def validate(text: str) -> list[str]:
    """Return human-readable warnings for *text*.

    Parameters
    ----------
    text : str
        Complete G-code program.

    Returns
    -------
    list[str]
        Warnings; empty when every rule passes.
    """
    safe_return = spindle_stop = coolant_off = False
    rapid_drops: list[str] = []
    last_rapid_z: float | None = None

    for n, line in enumerate(text.splitlines(), start=1):
        instr = parse_line(line)
        if not isinstance(instr, Command):
            continue

        spindle_stop = spindle_stop or _has_code(instr, "M", 5)
        coolant_off = coolant_off or _has_code(instr, "M", 9)

        if not instr.is_rapid:
            continue
        z = instr.get("Z")
        if z is None:
            continue
        if z > SAFE_Z_THRESHOLD:
            safe_return = True
        if last_rapid_z is not None and last_rapid_z - z > MAX_RAPID_DROP:
            rapid_drops.append(
                f"Rapid move drops Z by {last_rapid_z - z:.3f} mm"
                f" (possible collision) at line {n}: {line.strip()}"
            )
        last_rapid_z = z

    warnings: list[str] = []
    if not safe_return:
        warnings.append(
            f"Program never returns to a safe Z height (no rapid to Z > {SAFE_Z_THRESHOLD:g})"
        )
    if not spindle_stop:
        warnings.append("Program never stops the spindle (M5 missing)")
    if not coolant_off:
        warnings.append("Program never switches the coolant off (M9 missing)")
    warnings.extend(rapid_drops)

    for w in warnings:
        logger.debug("Validation: %s", w)
    return warnings
