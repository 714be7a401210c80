"""Flat-record serialization and the `results.json` contract."""

from __future__ import annotations

from dataclasses import MISSING, asdict, fields
import json
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import pandas as pd

from .composite import FourBScore
from .constants import IDEAL_SEGMENT_ORDER
from .pipeline import SessionAnalysisResults
from .scoring_config import ScoringConfig, flatten_config, unflatten_config
from .sequence import SwingSequenceAnalysis
from .session import SessionStats
from .validation import ACCURACY_TIERS, ValidationReport

_BREAKDOWN_FIELDS = ("results_breakdown", "hit_types_breakdown")


def four_b_score_to_record(score: FourBScore) -> dict[str, Any]:
    return asdict(score)


def four_b_score_from_record(record: Mapping[str, Any]) -> FourBScore:
    return FourBScore(
        brain=_optional_float(record.get("brain")),
        body=_optional_float(record.get("body")),
        bat=_optional_float(record.get("bat")),
        ball=_optional_float(record.get("ball")),
        composite=_optional_int(record.get("composite")),
        grade=str(record.get("grade", "")),
        weakest_pillar=_optional_str(record.get("weakest_pillar")),
        is_partial=_as_bool(record.get("is_partial", False)),
        config_version_id=_optional_str(record.get("config_version_id")),
    )


def scoring_config_to_record(config: ScoringConfig) -> dict[str, float]:
    """Dotted ``group.field`` keys, one per threshold."""
    return flatten_config(config)


def scoring_config_from_record(record: Mapping[str, Any]) -> ScoringConfig:
    return unflatten_config(record)


def session_stats_to_record(stats: SessionStats) -> dict[str, Any]:
    """Flat record; breakdown maps are stored as JSON strings."""
    record = asdict(stats)
    for name in _BREAKDOWN_FIELDS:
        record[name] = json.dumps(record[name])
    return record


def session_stats_from_record(record: Mapping[str, Any]) -> SessionStats:
    values: dict[str, Any] = {}
    for item in fields(SessionStats):
        if item.name not in record:
            continue
        raw = record[item.name]
        if item.name in _BREAKDOWN_FIELDS:
            parsed = json.loads(raw) if isinstance(raw, str) else dict(raw or {})
            values[item.name] = {str(k): int(v) for k, v in parsed.items()}
        elif item.default is MISSING:
            values[item.name] = raw
        elif isinstance(item.default, str):
            values[item.name] = str(raw)
        elif isinstance(item.default, int):
            values[item.name] = int(raw)
        else:
            values[item.name] = float(raw)
    return SessionStats(**values)


def sequence_analysis_to_record(analysis: SwingSequenceAnalysis) -> dict[str, Any]:
    record: dict[str, Any] = {
        "swing_id": analysis.swing_id,
        "actual_order": ",".join(analysis.actual_order),
        "inversions": analysis.inversions,
        "sequence_match": analysis.sequence_match,
        "sequence_score": analysis.sequence_score,
        "defects": ",".join(analysis.defects),
        "is_complete": analysis.is_complete,
        "summary": analysis.summary,
    }
    for segment in IDEAL_SEGMENT_ORDER:
        peak = analysis.peaks.get(segment)
        record[f"{segment}_peak_time"] = None if peak is None else peak.peak_time
        record[f"{segment}_peak_value"] = None if peak is None else peak.peak_value
    return record


def validation_report_to_record(report: ValidationReport) -> dict[str, Any]:
    record: dict[str, Any] = {
        "matched": report.matched,
        "unmatched_a": report.unmatched_a,
        "unmatched_b": report.unmatched_b,
        "mean_delta": report.mean_delta,
    }
    for tier in ACCURACY_TIERS:
        record[f"tier_{tier.lower()}"] = report.tier_counts.get(tier, 0)
    return record


def write_results_tables(results: SessionAnalysisResults, output_dir: str | Path) -> dict[str, Path]:
    """Write per-swing tables as CSV."""
    table_dir = Path(output_dir) / "tables"
    table_dir.mkdir(parents=True, exist_ok=True)

    table_map = {
        "swings": (results.swings_df, table_dir / "swings.csv"),
        "scored_swings": (results.scored_swings, table_dir / "scored_swings.csv"),
        "session_stats": (
            pd.DataFrame([session_stats_to_record(results.session_stats)]),
            table_dir / "session_stats.csv",
        ),
    }
    written: dict[str, Path] = {}
    for key, (frame, path) in table_map.items():
        frame.to_csv(path, index=False)
        written[key] = path
    return written


def write_results_contract(
    results: SessionAnalysisResults,
    *,
    output_dir: str | Path,
    input_path: str | Path | None = None,
    table_paths: dict[str, Path] | None = None,
) -> Path:
    """Write `results.json` with detection, thresholds, scores and artifact manifest."""
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)
    contract_path = root / "results.json"

    contract: dict[str, Any] = {
        "generated_at_utc": pd.Timestamp.now(tz="UTC").isoformat(),
        "input_path": None if input_path is None else str(Path(input_path)),
        "output_dir": str(root),
        "detection": {
            "format": results.detection.export_format.value,
            "display_name": results.detection.export_format.display_name,
            "confidence": results.detection.confidence,
            "field_map": (
                results.detection.field_map.as_dict() if results.detection.field_map is not None else {}
            ),
        },
        "scoring_config": {
            "version_id": results.config_version_id,
            "thresholds": scoring_config_to_record(results.config),
        },
        "session_stats": session_stats_to_record(results.session_stats),
        "contact_summary": results.contact_summary,
        "four_b_score": four_b_score_to_record(results.four_b_score),
        "artifacts": {
            "tables": {
                key: str(path.relative_to(root)) if path.is_relative_to(root) else str(path)
                for key, path in (table_paths or {}).items()
            },
        },
    }
    contract_path.write_text(json.dumps(jsonify_obj(contract), indent=2) + "\n", encoding="utf-8")
    return contract_path


def load_results_contract(output_dir: str | Path) -> dict[str, Any]:
    """Load `results.json` from an output directory."""
    contract_path = Path(output_dir) / "results.json"
    if not contract_path.exists():
        raise FileNotFoundError(f"Missing results contract at {contract_path}. Run swing-lab with --output-dir first.")
    return json.loads(contract_path.read_text(encoding="utf-8"))


def jsonify_obj(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): jsonify_obj(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonify_obj(item) for item in value]
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


def _optional_float(value: Any) -> float | None:
    if value is None or (isinstance(value, float) and np.isnan(value)) or value == "":
        return None
    return float(value)


def _optional_int(value: Any) -> int | None:
    number = _optional_float(value)
    return None if number is None else int(round(number))


def _optional_str(value: Any) -> str | None:
    if value is None or (isinstance(value, float) and np.isnan(value)) or value == "":
        return None
    return str(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)
