"""Coach-facing text/table formatting helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd

from .composite import FourBScore
from .constants import SEGMENT_DISPLAY_NAMES
from .peers import PeerComparison
from .sequence import SwingSequenceAnalysis
from .session import SessionStats
from .validation import ValidationReport


def build_session_snapshot_text(
    stats: SessionStats,
    *,
    four_b: FourBScore | None = None,
    source_label: str | None = None,
) -> str:
    """Create a short text block summarizing one hitting session."""
    if not stats.has_data:
        return "Session Snapshot\n- No swings recorded."

    score_lines = ""
    if four_b is not None and four_b.has_data:
        partial = " (partial)" if four_b.is_partial else ""
        weakest = four_b.weakest_pillar.title() if four_b.weakest_pillar else "-"
        score_lines = (
            f"\n- 4B composite: {four_b.composite} ({four_b.grade}){partial}"
            f"\n- Weakest link: {weakest}"
        )
    header = f"Session Snapshot ({source_label})" if source_label else "Session Snapshot"
    text = (
        f"{header}\n"
        f"- Swings: {stats.total_swings} ({stats.misses} misses, {stats.fouls} fouls)\n"
        f"- Contact rate: {stats.contact_rate:.1f}%\n"
        f"- Balls in play: {stats.balls_in_play}\n"
        f"- Exit velo avg/max: {stats.avg_exit_velo:.1f} / {stats.max_exit_velo:.1f} mph\n"
        f"- 95+ mph: {stats.velo_95_plus}\n"
        f"- Avg launch angle: {stats.avg_launch_angle:.1f} deg\n"
        f"- Quality hits / barrels: {stats.quality_hits} / {stats.barrel_hits} "
        f"({stats.quality_hit_pct:.1f}% / {stats.barrel_pct:.1f}%)\n"
        f"- Points per swing: {stats.points_per_swing:.1f} (Ball score {stats.ball_score})"
        f"{score_lines}"
    )
    return text


def coach_swing_table(scored_swings: pd.DataFrame, top_n: int | None = None) -> pd.DataFrame:
    """Round and rename the per-swing scoring table, best contact first."""
    table = scored_swings.copy()
    table = table.rename(
        columns={
            "swing_index": "Swing",
            "exit_velo_mph": "Exit velo (mph)",
            "launch_angle_deg": "Launch angle (deg)",
            "distance_ft": "Distance (ft)",
            "result": "Result",
            "batted_ball_type": "Type",
            "is_hard_hit": "Hard hit",
            "is_barrel": "Barrel",
            "contact_score": "Contact score",
        }
    )
    table["Swing"] = table["Swing"] + 1
    for col, digits in [("Exit velo (mph)", 1), ("Launch angle (deg)", 1), ("Distance (ft)", 0)]:
        if col in table.columns:
            table[col] = pd.to_numeric(table[col], errors="coerce").round(digits)

    keep = [
        "Swing",
        "Exit velo (mph)",
        "Launch angle (deg)",
        "Distance (ft)",
        "Result",
        "Type",
        "Hard hit",
        "Barrel",
        "Contact score",
    ]
    keep = [col for col in keep if col in table.columns]
    table = table[keep].sort_values(["Contact score", "Swing"], ascending=[False, True], kind="mergesort")
    if top_n is not None:
        table = table.head(top_n)
    return table.reset_index(drop=True)


def coach_sequence_table(analyses: Sequence[SwingSequenceAnalysis]) -> pd.DataFrame:
    """One row per swing: firing order, score and defects in coach wording."""
    rows = [
        {
            "Swing": analysis.swing_id,
            "Order": " > ".join(SEGMENT_DISPLAY_NAMES[segment] for segment in analysis.actual_order),
            "Sequence score": analysis.sequence_score,
            "In sequence": analysis.sequence_match,
            "Defects": ", ".join(defect.replace("_", " ") for defect in analysis.defects) or "-",
        }
        for analysis in analyses
    ]
    return pd.DataFrame(rows, columns=["Swing", "Order", "Sequence score", "In sequence", "Defects"])


def coach_validation_table(report: ValidationReport) -> pd.DataFrame:
    """Matched subject/date pairs, largest disagreement first."""
    table = pd.DataFrame(
        [
            {
                "Subject": record.subject_id,
                "Date": record.date.isoformat(),
                "Composite A": record.composite_a,
                "Composite B": record.composite_b,
                "Delta": round(record.delta, 1),
                "Accuracy": record.tier,
            }
            for record in report.records
        ],
        columns=["Subject", "Date", "Composite A", "Composite B", "Delta", "Accuracy"],
    )
    return table.sort_values("Delta", ascending=False, kind="mergesort").reset_index(drop=True)


def coach_peer_table(comparison: PeerComparison) -> pd.DataFrame:
    """Subject vs cohort reference per metric; empty when no comparison is available."""
    columns = ["Metric", "Player", "Cohort", "Delta", "Percentile"]
    if not comparison.available:
        return pd.DataFrame(columns=columns)
    rows = [
        {
            "Metric": metric.replace("_", " ").title(),
            "Player": round(comparison.subject[metric], 1),
            "Cohort": round(comparison.reference[metric], 1),
            "Delta": round(delta, 1),
            "Percentile": comparison.percentiles.get(metric),
        }
        for metric, delta in comparison.deltas.items()
    ]
    return pd.DataFrame(rows, columns=columns)


def write_report_text(output_path: str | Path, text: str) -> None:
    """Persist a copy/paste text block for coach notes."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text.strip() + "\n", encoding="utf-8")
