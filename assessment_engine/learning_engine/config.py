"""
Learning Engine Configuration - Central Constants Registry.

Every coefficient used by the engine algorithms is defined here with its
provenance. Algorithm modules import these instead of embedding literals.

Each constant includes:
- value: The actual constant value
- source: Where the value comes from
- notes: Rationale and context
- validated: Whether the value has been checked against its source
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any


@dataclass(frozen=True)
class SourcedValue:
    """
    A constant value with documented provenance.

    All engine constants must use this type to enforce documentation.
    """

    value: Any
    source: str
    notes: str = ""
    validated: bool = False

    def __post_init__(self):
        if not self.source or self.source.strip() == "":
            raise ValueError(f"SourcedValue must have non-empty source. Got: {self.source}")


# =============================================================================
# Mastery Tracker
# =============================================================================

MASTERY_LEARNING_RATE_BASE = SourcedValue(
    value=0.3,
    source="Engine mastery model: base learning rate of the bounded incremental update",
    notes="rate = max(floor, base / sqrt(n + 1)); early answers move the level most",
    validated=True,
)

MASTERY_LEARNING_RATE_FLOOR = SourcedValue(
    value=0.05,
    source="Engine mastery model: minimum learning rate",
    notes="Keeps the level responsive after hundreds of answers",
    validated=True,
)

MASTERY_ACHIEVED_LEVEL = SourcedValue(
    value=0.9,
    source="Engine mastery model: achieved threshold on the level",
    notes="Must be combined with MASTERY_WINDOW_ACCURACY over a full window",
    validated=True,
)

MASTERY_WINDOW_SIZE = SourcedValue(
    value=10,
    source="Engine mastery model: recent-answer window for the achieved check",
    notes="A window with fewer answers never qualifies as achieved",
    validated=True,
)

MASTERY_WINDOW_ACCURACY = SourcedValue(
    value=0.9,
    source="Engine mastery model: minimum accuracy over the recent window",
    validated=True,
)

MASTERY_MAX_RETRIES = SourcedValue(
    value=2,
    source="Engine concurrency contract: optimistic write retries with a fresh read",
    notes="Stale-version and duplicate-insert races retried this many times before ConcurrencyConflict",
    validated=True,
)

# =============================================================================
# Eligibility Filter (spaced repetition)
# =============================================================================

# Index = consecutive correct exposures (capped at the last entry)
COOLDOWN_SCHEDULE = SourcedValue(
    value=(
        timedelta(0),
        timedelta(hours=1),
        timedelta(days=1),
        timedelta(days=4),
        timedelta(days=10),
    ),
    source="Engine spaced repetition: expanding review intervals 0 / 1h / 1d / 4d / 10d",
    notes="A miss resets the streak to 0, which makes the question immediately eligible",
    validated=True,
)

# =============================================================================
# Question Selector
# =============================================================================

DIFFICULTY_MIN = SourcedValue(value=1, source="Closed difficulty scale 1..5 (DifficultyLevel)", validated=True)
DIFFICULTY_MAX = SourcedValue(value=5, source="Closed difficulty scale 1..5 (DifficultyLevel)", validated=True)

SELECTION_DEFAULT_TARGET_DIFFICULTY = SourcedValue(
    value=3,
    source="Engine question schema: difficulty defaults to 3",
    validated=True,
)

SELECTION_ROLLING_WINDOW = SourcedValue(
    value=5,
    source="Engine adaptive difficulty: rolling accuracy over the last 5 answers per objective",
    validated=True,
)

SELECTION_STEP_UP_ACCURACY = SourcedValue(
    value=0.85,
    source="Engine adaptive difficulty: raise target when rolling accuracy exceeds 85%",
    validated=True,
)

SELECTION_STEP_DOWN_ACCURACY = SourcedValue(
    value=0.5,
    source="Engine adaptive difficulty: lower target when rolling accuracy drops below 50%",
    validated=True,
)

SELECTION_BAND_HALF_WIDTH = SourcedValue(
    value=1,
    source="Engine design decision: difficulty band is target +/- 1, clipped to the scale",
    notes="A width of 1 keeps three adjacent levels in play so small pools stay usable",
    validated=False,
)

SELECTION_MAX_REDISTRIBUTION_ROUNDS = SourcedValue(
    value=3,
    source="Engine selection contract: bounded redistribution of exhausted objectives",
    validated=True,
)

# =============================================================================
# Exam defaults / Test Scorer
# =============================================================================

EXAM_DEFAULT_PASSING_SCORE = SourcedValue(
    value=0.65,
    source="Engine exam schema: passing_score default",
    validated=True,
)

EXAM_DEFAULT_QUESTION_COUNT = SourcedValue(
    value=65,
    source="Engine exam schema: question_count default",
    validated=True,
)

EXAM_DEFAULT_TIME_LIMIT_MINUTES = SourcedValue(
    value=90,
    source="Engine exam schema: time_limit_minutes default",
    validated=True,
)

OBJECTIVE_WEIGHT_TOLERANCE = SourcedValue(
    value=1e-6,
    source="Engine data contract: objective weights of one exam sum to 1.0 +/- 1e-6",
    validated=True,
)

# =============================================================================
# Readiness Predictor
# =============================================================================

READINESS_MASTERY_WEIGHT = SourcedValue(
    value=0.6,
    source="Engine readiness blend: mastery share",
    notes="Tunable default; mastery and test weights sum to 1",
    validated=False,
)

READINESS_TEST_WEIGHT = SourcedValue(
    value=0.4,
    source="Engine readiness blend: recent practice test share",
    notes="Tunable default",
    validated=False,
)

READINESS_EMA_ALPHA = SourcedValue(
    value=0.3,
    source="Engine readiness trend: exponential moving average smoothing factor",
    notes="Higher alpha favours the newest test",
    validated=False,
)

READINESS_PRIOR_VARIANCE = SourcedValue(
    value=0.0225,
    source="Engine design decision: prior score variance (sd 0.15) when fewer than 2 tests exist",
    validated=False,
)

READINESS_Z_SCORE = SourcedValue(
    value=1.96,
    source="Standard normal quantile for a two-sided 95% interval",
    validated=True,
)

READINESS_RECOMMENDATION_COUNT = SourcedValue(
    value=3,
    source="Engine user progress: recommended objectives list",
    notes="Top objectives by remaining priority w * (1 - m)",
    validated=True,
)
