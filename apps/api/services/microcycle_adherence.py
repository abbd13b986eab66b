"""
Microcycle Adherence Rollup

Rolls a contiguous block of DayAdherence records up into:
- the unweighted mean of global accuracy over days WITH data
- best and worst day (ties go to the earliest date)
- per-domain averages across the window
- a (date, accuracy) series for the trend chart

Days without data are kept in `days` for the chart but never dragged into
the average as zeros.

Sparse windows: with fewer than `min_days_with_data` real days a one-point
trend is meaningless, so the caller may inject an illustrative sample
dataset (see sample_microcycle.py). The sample is always an explicit
argument, never module state.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from services.adherence_aggregate import (
    DEFAULT_WEIGHTS,
    DOMAIN_ORDER,
    AdherenceWeights,
    Domain,
    mean_accuracy,
)
from services.day_adherence import (
    DEFAULT_GOALS,
    DayAdherence,
    ExercisePlan,
    LoggedMeal,
    LoggedSet,
    MealPlan,
    NutritionGoals,
    SleepLog,
    Supplement,
    SupplementLog,
    build_day_adherence,
)

logger = logging.getLogger(__name__)

MIN_DAYS_FOR_TREND = 2


@dataclass(frozen=True)
class MicrocycleAdherence:
    days: Tuple[DayAdherence, ...]
    average_accuracy: int
    best_day: Optional[DayAdherence] = None
    worst_day: Optional[DayAdherence] = None
    domain_averages: Dict[Domain, int] = field(default_factory=dict)
    is_sample: bool = False

    @property
    def days_with_data(self) -> List[DayAdherence]:
        return [d for d in self.days if d.has_data]


@dataclass(frozen=True)
class AccuracyPoint:
    """One point on the daily global accuracy line chart."""
    date: date
    accuracy: int
    has_data: bool


def microcycle_date_range(
    start: date,
    end: Optional[date] = None,
    duration_weeks: int = 1,
    today: Optional[date] = None,
) -> List[date]:
    """
    Contiguous dates of a microcycle.

    Without an explicit end the block lasts `duration_weeks` weeks. Future
    days are cut off at `today`. Empty if the block has not started yet.
    """
    if end is None:
        end = start + timedelta(days=duration_weeks * 7 - 1)
    today = today or date.today()
    effective_end = min(end, today)
    if start > effective_end:
        return []
    return [start + timedelta(days=i) for i in range((effective_end - start).days + 1)]


def build_microcycle_days(
    dates: Sequence[date],
    *,
    goals: NutritionGoals = DEFAULT_GOALS,
    meals: Sequence[LoggedMeal] = (),
    meal_plans: Sequence[MealPlan] = (),
    exercise_plans: Sequence[ExercisePlan] = (),
    sets: Sequence[LoggedSet] = (),
    sleep_logs: Sequence[SleepLog] = (),
    active_supplements: Sequence[Supplement] = (),
    supplement_logs: Sequence[SupplementLog] = (),
    weights: AdherenceWeights = DEFAULT_WEIGHTS,
) -> List[DayAdherence]:
    """
    One DayAdherence per date from window-wide logs.

    Sleep logs are matched to days by sleep_date; undated ones cannot be
    placed and are skipped with a warning.
    """
    sleep_by_date = {s.sleep_date: s for s in sleep_logs if s.sleep_date is not None}
    undated = sum(1 for s in sleep_logs if s.sleep_date is None)
    if undated:
        logger.warning(f"Skipping {undated} sleep log(s) without sleep_date in microcycle build")
    return [
        build_day_adherence(
            day,
            goals=goals,
            meals=meals,
            meal_plans=meal_plans,
            exercise_plans=exercise_plans,
            sets=sets,
            sleep=sleep_by_date.get(day),
            active_supplements=active_supplements,
            supplement_logs=supplement_logs,
            weights=weights,
        )
        for day in dates
    ]


def _pick_extreme(days: Sequence[DayAdherence], best: bool) -> DayAdherence:
    # Earliest date wins ties, regardless of input order
    ordered = sorted(days, key=lambda d: d.date)
    chosen = ordered[0]
    for day in ordered[1:]:
        if best and day.global_accuracy > chosen.global_accuracy:
            chosen = day
        elif not best and day.global_accuracy < chosen.global_accuracy:
            chosen = day
    return chosen


def domain_averages(days: Sequence[DayAdherence]) -> Dict[Domain, int]:
    """Average of each domain over the days on which that domain was present."""
    averages: Dict[Domain, int] = {}
    for domain in DOMAIN_ORDER:
        values = [d.domain_accuracy(domain) for d in days]
        present = [v for v in values if v is not None]
        if present:
            averages[domain] = mean_accuracy(present)
    return averages


def rollup_microcycle(days: Sequence[DayAdherence], is_sample: bool = False) -> MicrocycleAdherence:
    """
    Roll days up into a MicrocycleAdherence.

    Empty input (or no day with data) gives average 0 and no best/worst day.
    """
    with_data = [d for d in days if d.has_data]
    if not with_data:
        return MicrocycleAdherence(days=tuple(days), average_accuracy=0, is_sample=is_sample)

    average = mean_accuracy([d.global_accuracy for d in with_data], empty=0)
    best = _pick_extreme(with_data, best=True)
    worst = _pick_extreme(with_data, best=False)

    logger.debug(
        f"Microcycle {days[0].date}..{days[-1].date}: avg={average}, "
        f"best={best.date} ({best.global_accuracy}), worst={worst.date} ({worst.global_accuracy}), "
        f"days_with_data={len(with_data)}/{len(days)}"
    )

    return MicrocycleAdherence(
        days=tuple(days),
        average_accuracy=average,
        best_day=best,
        worst_day=worst,
        domain_averages=domain_averages(with_data),
        is_sample=is_sample,
    )


def select_microcycle_days(
    real_days: Sequence[DayAdherence],
    sample_days: Optional[Sequence[DayAdherence]] = None,
    min_days_with_data: int = MIN_DAYS_FOR_TREND,
) -> Tuple[List[DayAdherence], bool]:
    """
    Choose between real days and an injected sample dataset.

    Returns (days, is_sample). The sample is used only when one is supplied
    and the real window has fewer than `min_days_with_data` days with data.
    """
    real_with_data = sum(1 for d in real_days if d.has_data)
    if sample_days is not None and real_with_data < min_days_with_data:
        logger.info(
            f"Only {real_with_data} day(s) with data (< {min_days_with_data}), "
            f"falling back to sample microcycle"
        )
        return list(sample_days), True
    return list(real_days), False


def accuracy_series(microcycle: MicrocycleAdherence) -> List[AccuracyPoint]:
    return [AccuracyPoint(d.date, d.global_accuracy, d.has_data) for d in microcycle.days]
