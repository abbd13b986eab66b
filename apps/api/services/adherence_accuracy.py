"""
Adherence Accuracy Calculators

Turns one (planned, real) pair into a 0-100 accuracy score.

Metric kinds:
- General quantity (macros in grams, hours slept, supplements taken)
- Time of day (bedtime, meal time) with midnight wraparound
- Rep range (reps of a working set vs the planned min-max range)
- Set count (working sets completed vs planned)

Every function here is total: degenerate inputs (planned == 0, empty lists)
map to a defined score instead of raising. The bucket boundaries are policy
constants and must not drift: the rest of the engine and its tests depend on
the exact breakpoints.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)


class AccuracyTier(str, Enum):
    """Qualitative bucket for a single comparison."""
    ON_TARGET = "on-target"
    MINOR_DEVIATION = "minor-deviation"
    MAJOR_DEVIATION = "major-deviation"
    CRITICAL = "critical"


class MetricKind(str, Enum):
    GENERAL_QUANTITY = "general_quantity"
    TIME_OF_DAY = "time_of_day"
    REP_RANGE = "rep_range"
    SET_COUNT = "set_count"


@dataclass(frozen=True)
class AccuracyResult:
    """Score for one comparison. accuracy is never negative."""
    accuracy: int
    tier: AccuracyTier


Clock = str  # "HH:MM", 24-hour
PlannedValue = Union[float, Clock, Tuple[int, int]]


@dataclass(frozen=True)
class MetricSample:
    """
    One planned/real comparison built by the caller.

    For REP_RANGE samples `planned` is a (min_reps, max_reps) tuple.
    For TIME_OF_DAY samples both values are "HH:MM" strings.
    """
    kind: MetricKind
    planned: PlannedValue
    real: Union[float, Clock]
    label: str
    unit: Optional[str] = None


# ---------------------------------------------------------------------------
# Policy constants
# ---------------------------------------------------------------------------

MINUTES_PER_DAY = 24 * 60
HALF_DAY_MINUTES = 12 * 60

# Schedule adherence: (max minutes off, score). Anything later scores the floor.
TIME_OF_DAY_BUCKETS: List[Tuple[int, int]] = [
    (60, 100),
    (120, 90),
]
TIME_OF_DAY_FLOOR = 80

# Meal timing is stricter than bedtime.
MEAL_TIMING_BUCKETS: List[Tuple[int, int]] = [
    (15, 100),
    (30, 80),
    (60, 60),
]
MEAL_TIMING_FLOOR = 30

# Reps outside the planned range, keyed by how many reps off.
REP_DEVIATION_RESULTS = {
    1: AccuracyResult(95, AccuracyTier.MINOR_DEVIATION),
    2: AccuracyResult(90, AccuracyTier.MINOR_DEVIATION),
}
REP_DEVIATION_FLOOR = AccuracyResult(80, AccuracyTier.MAJOR_DEVIATION)

# Working sets off target, keyed by absolute difference.
SET_DEVIATION_RESULTS = {
    0: AccuracyResult(100, AccuracyTier.ON_TARGET),
    1: AccuracyResult(90, AccuracyTier.MINOR_DEVIATION),
}
SET_DEVIATION_FLOOR = AccuracyResult(80, AccuracyTier.MAJOR_DEVIATION)

ON_TARGET = AccuracyResult(100, AccuracyTier.ON_TARGET)

# Generic tier thresholds for continuous scores (same cut-offs as the verdicts)
TIER_THRESHOLDS: List[Tuple[int, AccuracyTier]] = [
    (95, AccuracyTier.ON_TARGET),
    (90, AccuracyTier.MINOR_DEVIATION),
    (75, AccuracyTier.MAJOR_DEVIATION),
]

# Reps-in-reserve: each rep of RIR off target costs this many points
RIR_PENALTY_PER_REP = 25

DEFAULT_REP_RANGE = (8, 12)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (92.5 -> 93)."""
    return int(math.floor(value + 0.5))


def tier_for_accuracy(accuracy: float) -> AccuracyTier:
    for threshold, tier in TIER_THRESHOLDS:
        if accuracy >= threshold:
            return tier
    return AccuracyTier.CRITICAL


def parse_clock(value: Clock) -> int:
    """
    Parse an "HH:MM" 24-hour clock into minutes after midnight.

    Raises ValueError on a malformed clock; callers at the API boundary
    validate the shape before it gets here.
    """
    hours_str, minutes_str = value.strip().split(":")
    hours = int(hours_str)
    minutes = int(minutes_str)
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Clock out of range: {value!r}")
    return hours * 60 + minutes


def signed_clock_offset_minutes(planned: Clock, real: Clock) -> int:
    """
    Minutes from planned to real, folded into (-720, 720].

    Positive means real was later than planned. 23:00 -> 00:30 is +90,
    not -1350.
    """
    offset = parse_clock(real) - parse_clock(planned)
    if offset > HALF_DAY_MINUTES:
        offset -= MINUTES_PER_DAY
    elif offset <= -HALF_DAY_MINUTES:
        offset += MINUTES_PER_DAY
    return offset


def clock_difference_minutes(planned: Clock, real: Clock) -> int:
    """Absolute minute distance between two clocks, across midnight if shorter."""
    return abs(signed_clock_offset_minutes(planned, real))


def _bucket_score(diff_minutes: int, buckets: List[Tuple[int, int]], floor: int) -> int:
    for max_minutes, score in buckets:
        if diff_minutes <= max_minutes:
            return score
    return floor


def parse_rep_range(value: Optional[str], default: Tuple[int, int] = DEFAULT_REP_RANGE) -> Tuple[int, int]:
    """
    Parse a planned rep prescription.

    "10-12" -> (10, 12), "8" -> (8, 8). Empty or unparseable strings fall
    back to the default range.
    """
    if not value:
        return default
    text = value.strip()
    try:
        if "-" in text:
            low_str, high_str = text.split("-", 1)
            low, high = int(low_str), int(high_str)
        else:
            low = high = int(text)
    except ValueError:
        logger.debug(f"Unparseable rep range {value!r}, using default {default}")
        return default
    if low <= 0 or high <= 0:
        return default
    return (min(low, high), max(low, high))


# ---------------------------------------------------------------------------
# Calculators
# ---------------------------------------------------------------------------

def general_accuracy(planned: float, real: float) -> int:
    """
    Accuracy of a real quantity against its planned quantity.

    Error is symmetric: 150 against 100 and 50 against 100 both score 50.
    An overshoot of 200% or more floors at 0; the score is never above 100.

    Examples:
        >>> general_accuracy(150, 140)
        93
        >>> general_accuracy(0, 0)
        100
    """
    if planned == 0:
        return 100 if real == 0 else 0
    error_margin = abs(planned - real) / abs(planned)
    return max(0, round_half_up(100 - error_margin * 100))


def time_of_day_accuracy(planned_hhmm: Clock, real_hhmm: Clock) -> int:
    """Coarse three-step schedule score: <=60 min 100, <=120 min 90, else 80."""
    diff = clock_difference_minutes(planned_hhmm, real_hhmm)
    return _bucket_score(diff, TIME_OF_DAY_BUCKETS, TIME_OF_DAY_FLOOR)


def meal_timing_accuracy(planned_hhmm: Clock, real_hhmm: Clock) -> int:
    """Meal schedule score: <=15 min 100, <=30 min 80, <=60 min 60, else 30."""
    diff = clock_difference_minutes(planned_hhmm, real_hhmm)
    return _bucket_score(diff, MEAL_TIMING_BUCKETS, MEAL_TIMING_FLOOR)


def rep_deviation(min_reps: int, max_reps: int, real_reps: int) -> int:
    """Signed reps outside the range: negative when short, positive when over, 0 inside."""
    if real_reps < min_reps:
        return real_reps - min_reps
    if real_reps > max_reps:
        return real_reps - max_reps
    return 0


def rep_range_accuracy(min_reps: int, max_reps: int, real_reps: int) -> AccuracyResult:
    deviation = abs(rep_deviation(min_reps, max_reps, real_reps))
    if deviation == 0:
        return ON_TARGET
    return REP_DEVIATION_RESULTS.get(deviation, REP_DEVIATION_FLOOR)


def set_count_accuracy(planned_sets: int, real_sets: int) -> AccuracyResult:
    diff = abs(planned_sets - real_sets)
    return SET_DEVIATION_RESULTS.get(diff, SET_DEVIATION_FLOOR)


def rir_accuracy(target_rir: Optional[float], real_rirs: Sequence[Optional[float]]) -> int:
    """
    Reps-in-reserve adherence averaged over sets that recorded RIR.

    No target, or no set with a recorded RIR, scores 100.
    """
    if target_rir is None:
        return 100
    recorded = [r for r in real_rirs if r is not None]
    if not recorded:
        return 100
    scores = [max(0.0, 100 - abs(r - target_rir) * RIR_PENALTY_PER_REP) for r in recorded]
    return round_half_up(sum(scores) / len(scores))


def fulfilment_percent(planned: float, real: float) -> Optional[float]:
    """Raw real/planned percentage for overshoot display. None when nothing was planned."""
    if planned == 0:
        return None
    return round(real / planned * 100, 1)


def evaluate_sample(sample: MetricSample) -> AccuracyResult:
    """Score a MetricSample with the calculator for its kind."""
    if sample.kind == MetricKind.TIME_OF_DAY:
        accuracy = time_of_day_accuracy(str(sample.planned), str(sample.real))
        return AccuracyResult(accuracy, tier_for_accuracy(accuracy))

    if sample.kind == MetricKind.REP_RANGE:
        min_reps, max_reps = sample.planned
        return rep_range_accuracy(int(min_reps), int(max_reps), int(sample.real))

    if sample.kind == MetricKind.SET_COUNT:
        return set_count_accuracy(int(sample.planned), int(sample.real))

    accuracy = general_accuracy(float(sample.planned), float(sample.real))
    return AccuracyResult(accuracy, tier_for_accuracy(accuracy))
