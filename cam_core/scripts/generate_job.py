#!/usr/bin/env python3
"""
Generate Job Script.

Turn a job file (elements + settings overrides) into a G-code program.

Usage:
    python -m cam_core.scripts.generate_job jobs/bracket.yaml
    python -m cam_core.scripts.generate_job jobs/bracket.yaml -o out/bracket.nc
    python -m cam_core.scripts.generate_job jobs/bracket.yaml --dialect heidenhain
    python -m cam_core.scripts.generate_job jobs/bracket.json --optimize --report out/report.json

Job file format (YAML or JSON):
    name: bracket
    settings:            # optional, overrides machining.yaml
      tool_diameter: 6
      controller: fanuc
    elements:
      - {type: cylinder, id: boss, x: 0, y: 0, z: 0, radius: 10, height: 20}
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from cam_core.configs.loader import ConfigError, ControllerDialect, load_job, load_settings
from cam_core.gcode.analyzer import analyze
from cam_core.gcode.converter import convert
from cam_core.gcode.optimizer import optimize
from cam_core.toolpaths.program import generate_program
from cam_core.utils.fs import atomic_write_text
from cam_core.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

_SUFFIX = {
    ControllerDialect.FANUC: ".nc",
    ControllerDialect.HEIDENHAIN: ".h",
    ControllerDialect.GENERIC: ".gcode",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a G-code program from a job file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Dialects: {', '.join(d.value for d in ControllerDialect)}",
    )
    parser.add_argument("job", type=str, help="Job file (YAML or JSON)")
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output program path (default: job name + dialect suffix)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Machining settings file (default: shipped machining.yaml)",
    )
    parser.add_argument(
        "--dialect",
        "-d",
        type=str,
        choices=[d.value for d in ControllerDialect],
        help="Target controller (overrides the job settings)",
    )
    parser.add_argument(
        "--convert-from-generic",
        action="store_true",
        help="Generate generic G-code, then run it through the dialect converter",
    )
    parser.add_argument(
        "--optimize",
        action="store_true",
        help="Remove redundant rapid retracts",
    )
    parser.add_argument(
        "--report",
        type=str,
        help="Write the analysis report (JSON) to this path",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this file",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=args.log_level, log_file=args.log_file, quiet_libs=["trimesh"],
    )

    try:
        base = load_settings(args.config)
        job = load_job(args.job, base=base)
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Error loading job: %s", e)
        return 1

    settings = job.settings
    target = ControllerDialect(args.dialect) if args.dialect else settings.dialect

    if args.convert_from_generic:
        text = generate_program(job.elements, settings, ControllerDialect.GENERIC)
        text = convert(text, target)
    else:
        text = generate_program(job.elements, settings, target)

    if args.optimize:
        text = optimize(text)

    report = analyze(text)
    for warning in report.warnings:
        logger.warning("Validation: %s", warning)

    output = Path(args.output) if args.output else Path(job.name).with_suffix(_SUFFIX[target])
    try:
        atomic_write_text(output, text)
        if args.report:
            atomic_write_text(Path(args.report), json.dumps(report.to_dict(), indent=2) + "\n")
    except RuntimeError as e:
        logger.error("Error writing output: %s", e)
        return 1

    logger.info(
        "Wrote %s: %d lines, %d moves, est. %.1f min",
        output, report.total_lines, report.total_moves, report.estimated_time_min,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
