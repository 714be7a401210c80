"""CLI entrypoints for the swing scoring project."""

from __future__ import annotations

import argparse
import json
from typing import Sequence

from .config import build_project_registry, configure_logging, resolve_input_file, resolve_output_dir
from .pipeline import load_export, run_session_analysis
from .results_contract import (
    four_b_score_to_record,
    jsonify_obj,
    session_stats_to_record,
    write_results_contract,
    write_results_tables,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score a launch-monitor session export.")
    parser.add_argument(
        "--input",
        default=None,
        help="Path to the export CSV (default: auto-resolve from project config).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write results.json and per-swing tables to this directory.",
    )
    parser.add_argument("--source", default="", help="Player/session tag for swings without a user column.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging({0: None, 1: "INFO"}.get(args.verbose, "DEBUG"))

    input_path = resolve_input_file(args.input)
    headers, rows = load_export(input_path)
    results = run_session_analysis(headers, rows, registry=build_project_registry(), source=args.source)

    summary = {
        "input_path": str(input_path),
        "format": results.detection.export_format.value,
        "config_version_id": results.config_version_id,
        "session": session_stats_to_record(results.session_stats),
        "contact": results.contact_summary,
        "four_b_score": four_b_score_to_record(results.four_b_score),
    }
    if args.output_dir is not None:
        output_dir = resolve_output_dir(args.output_dir)
        table_paths = write_results_tables(results, output_dir)
        summary["results_path"] = str(
            write_results_contract(
                results,
                output_dir=output_dir,
                input_path=input_path,
                table_paths=table_paths,
            )
        )
    print(json.dumps(jsonify_obj(summary), indent=2))


if __name__ == "__main__":
    main()
