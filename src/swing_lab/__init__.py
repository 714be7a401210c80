"""Baseball hitting scoring and kinetic-sequence analysis package."""

from .composite import (
    CompositeResult,
    FourBScore,
    build_four_b_score,
    composite_score,
    grade_label,
    trend_direction,
    weakest_pillar,
)
from .config import (
    PathSettings,
    ProjectPaths,
    SwingLabConfig,
    build_project_registry,
    clear_project_config_cache,
    default_project_config,
    default_project_paths,
    find_project_root,
    load_project_scoring_config,
    resolve_input_file,
    resolve_output_dir,
)
from .constants import IDEAL_SEGMENT_ORDER, PILLAR_ORDER, PILLAR_WEIGHTS
from .detection import DetectionResult, ExportFormat, FieldMap, detect_export_format, normalize_header
from .exceptions import (
    ConfigVersionInUseError,
    ScoringConfigNotSetError,
    SwingLabError,
    UnknownConfigVersionError,
)
from .normalize import ScalarValue, Swing, ValueKind, coerce_scalar, lookup_value, normalize_swings
from .level_metrics import (
    LaDistribution,
    LevelAdjustedStats,
    ScoreComponents,
    ScoreDriver,
    compare_session_to_peers,
    la_distribution,
    level_adjusted_stats,
    score_drivers,
)
from .peers import CohortReference, PeerComparison, PercentileBand, compare_to_cohort
from .pillars import (
    BattedBallType,
    ContactScore,
    barrel_window,
    batted_ball_type,
    classify_swing,
    contact_quality_score,
    is_barrel,
    is_hard_hit,
    is_sweet_spot,
    score_swings,
)
from .pipeline import SessionAnalysisResults, load_export, run_session_analysis
from .pose import analyze_pose_sequence, segment_series_from_pose
from .presets import LevelThresholds, PeerBenchmark, ScoringPreset, preferred_scoring_preset
from .scoring_config import ScoringConfig, ScoringConfigRegistry, ScoringConfigVersion, merge_config
from .sequence import (
    SegmentSeries,
    SwingSequenceAnalysis,
    analyze_peak_times,
    analyze_sequence,
    brain_consistency_score,
    count_inversions,
    sequence_score,
)
from .session import SessionStats, summarize_swings
from .validation import ScoreRecord, ValidationRecord, ValidationReport, build_validation_report, reconcile_scores

__all__ = [
    "BattedBallType",
    "CohortReference",
    "CompositeResult",
    "ConfigVersionInUseError",
    "ContactScore",
    "DetectionResult",
    "ExportFormat",
    "FieldMap",
    "FourBScore",
    "IDEAL_SEGMENT_ORDER",
    "LaDistribution",
    "LevelAdjustedStats",
    "LevelThresholds",
    "PILLAR_ORDER",
    "PILLAR_WEIGHTS",
    "PathSettings",
    "PeerBenchmark",
    "PeerComparison",
    "PercentileBand",
    "ProjectPaths",
    "ScalarValue",
    "ScoreComponents",
    "ScoreDriver",
    "ScoreRecord",
    "ScoringConfig",
    "ScoringConfigNotSetError",
    "ScoringConfigRegistry",
    "ScoringConfigVersion",
    "ScoringPreset",
    "SegmentSeries",
    "SessionAnalysisResults",
    "SessionStats",
    "Swing",
    "SwingLabConfig",
    "SwingLabError",
    "SwingSequenceAnalysis",
    "UnknownConfigVersionError",
    "ValidationRecord",
    "ValidationReport",
    "ValueKind",
    "analyze_peak_times",
    "analyze_pose_sequence",
    "analyze_sequence",
    "barrel_window",
    "batted_ball_type",
    "brain_consistency_score",
    "build_four_b_score",
    "build_project_registry",
    "build_validation_report",
    "classify_swing",
    "clear_project_config_cache",
    "coerce_scalar",
    "compare_session_to_peers",
    "compare_to_cohort",
    "composite_score",
    "contact_quality_score",
    "count_inversions",
    "default_project_config",
    "default_project_paths",
    "detect_export_format",
    "find_project_root",
    "grade_label",
    "is_barrel",
    "is_hard_hit",
    "is_sweet_spot",
    "la_distribution",
    "level_adjusted_stats",
    "load_export",
    "load_project_scoring_config",
    "lookup_value",
    "merge_config",
    "normalize_header",
    "normalize_swings",
    "preferred_scoring_preset",
    "reconcile_scores",
    "resolve_input_file",
    "resolve_output_dir",
    "run_session_analysis",
    "score_drivers",
    "score_swings",
    "segment_series_from_pose",
    "sequence_score",
    "summarize_swings",
    "trend_direction",
    "weakest_pillar",
]
