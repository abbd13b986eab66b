"""
Day Adherence Builder

Pulls one calendar day's logs together per domain and scores them against
the plan:

- Nutrition: summed protein / carbs / fat vs daily goals (mean of 3 macros)
- Training: per exercise, set count and rep range adherence (warm-ups excluded)
- Sleep: bedtime proximity and hours slept vs target
- Supplements: active checklist vs what was taken

A domain with no underlying samples is left out of the global score
entirely; it is neither a free 100 nor a penalising 0. The per-meal and
per-exercise breakdowns are kept for drill-down only.

Inputs are already-materialised records. Nothing here fetches or persists.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from services.adherence_accuracy import (
    AccuracyResult,
    Clock,
    fulfilment_percent,
    general_accuracy,
    meal_timing_accuracy,
    rep_range_accuracy,
    rir_accuracy,
    round_half_up,
    set_count_accuracy,
    tier_for_accuracy,
    time_of_day_accuracy,
)
from services.adherence_aggregate import (
    DEFAULT_WEIGHTS,
    AdherenceWeights,
    Domain,
    DomainScore,
    MetricItem,
    domain_score,
    meal_macro_average,
    mean_accuracy,
    order_domain_scores,
    scores_by_domain,
    weighted_global_accuracy,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NutritionGoals:
    daily_calories: float = 2000
    daily_protein: float = 150
    daily_carbs: float = 250
    daily_fat: float = 70


DEFAULT_GOALS = NutritionGoals()


@dataclass(frozen=True)
class LoggedMeal:
    """One food log entry. Several entries may share a meal_type."""
    meal_type: str
    logged_date: date
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    calories: float = 0
    logged_at: Optional[datetime] = None
    food_name: Optional[str] = None


@dataclass(frozen=True)
class MealPlan:
    """Optional per-meal targets, used for drill-down only."""
    meal_type: str
    protein: float
    carbs: float
    fat: float
    planned_time: Optional[Clock] = None


@dataclass(frozen=True)
class ExercisePlan:
    exercise_id: str
    name: str
    target_sets: int = 3
    rep_range_min: int = 8
    rep_range_max: int = 12
    target_rir: Optional[float] = None


@dataclass(frozen=True)
class LoggedSet:
    exercise_id: str
    reps: int
    logged_at: datetime
    is_warmup: bool = False
    weight: Optional[float] = None
    rir: Optional[float] = None


@dataclass(frozen=True)
class SleepLog:
    planned_bedtime: Clock = "23:00"
    planned_hours: float = 8
    real_bedtime: Optional[Clock] = None
    real_hours: Optional[float] = None
    sleep_date: Optional[date] = None

    @property
    def has_samples(self) -> bool:
        return self.real_bedtime is not None or self.real_hours is not None


@dataclass(frozen=True)
class Supplement:
    supplement_id: str
    name: str = ""


@dataclass(frozen=True)
class SupplementLog:
    supplement_id: str
    logged_date: date


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MealBreakdown:
    meal_type: str
    entries: int
    protein: float
    carbs: float
    fat: float
    calories: float
    macro_accuracy: Optional[int] = None   # Only when a MealPlan exists
    timing_accuracy: Optional[int] = None  # Only with planned time + logged time
    planned_time: Optional[Clock] = None
    logged_time: Optional[Clock] = None


@dataclass(frozen=True)
class ExerciseBreakdown:
    exercise_id: str
    name: str
    target_sets: int
    rep_range_min: int
    rep_range_max: int
    working_sets: int
    warmup_sets: int
    reps: Tuple[int, ...]
    set_result: AccuracyResult
    rep_results: Tuple[AccuracyResult, ...]
    rep_accuracy: int
    rir_accuracy: int
    accuracy: int


@dataclass(frozen=True)
class DayAdherence:
    date: date
    domain_scores: Tuple[DomainScore, ...]
    global_accuracy: int
    has_data: bool
    meals: Tuple[MealBreakdown, ...] = field(default_factory=tuple)
    exercises: Tuple[ExerciseBreakdown, ...] = field(default_factory=tuple)

    def domain(self, domain: Domain) -> Optional[DomainScore]:
        for score in self.domain_scores:
            if score.domain == domain:
                return score
        return None

    def domain_accuracy(self, domain: Domain) -> Optional[int]:
        score = self.domain(domain)
        return score.accuracy if score else None


# ---------------------------------------------------------------------------
# Nutrition
# ---------------------------------------------------------------------------

MACROS: Tuple[Tuple[str, str], ...] = (
    ("protein", "daily_protein"),
    ("carbs", "daily_carbs"),
    ("fat", "daily_fat"),
)


def _macro_item(label: str, planned: float, real: float) -> MetricItem:
    accuracy = general_accuracy(planned, real)
    return MetricItem(
        label=label,
        result=AccuracyResult(accuracy, tier_for_accuracy(accuracy)),
        planned=planned,
        real=round(real, 1),
        unit="g",
        fulfilment=fulfilment_percent(planned, real),
    )


def score_nutrition(
    meals: Sequence[LoggedMeal],
    goals: NutritionGoals = DEFAULT_GOALS,
) -> Optional[DomainScore]:
    """Day-level nutrition score from summed macros. None when nothing was logged."""
    if not meals:
        return None
    items = []
    for macro, goal_field in MACROS:
        total = sum(float(getattr(m, macro) or 0) for m in meals)
        items.append(_macro_item(macro, getattr(goals, goal_field), total))
    return domain_score(Domain.NUTRITION, items)


def breakdown_meals(
    meals: Sequence[LoggedMeal],
    meal_plans: Sequence[MealPlan] = (),
) -> List[MealBreakdown]:
    """Group entries by meal type (first-seen order) for drill-down."""
    grouped: "OrderedDict[str, List[LoggedMeal]]" = OrderedDict()
    for meal in meals:
        grouped.setdefault(meal.meal_type, []).append(meal)

    plans = {p.meal_type: p for p in meal_plans}
    breakdowns = []
    for meal_type, entries in grouped.items():
        protein = sum(float(e.protein or 0) for e in entries)
        carbs = sum(float(e.carbs or 0) for e in entries)
        fat = sum(float(e.fat or 0) for e in entries)
        calories = sum(float(e.calories or 0) for e in entries)

        # Wall-clock order; entries may mix naive and tz-aware timestamps
        first_logged = min(
            (e.logged_at for e in entries if e.logged_at is not None),
            key=lambda dt: dt.replace(tzinfo=None),
            default=None,
        )
        logged_time = first_logged.strftime("%H:%M") if first_logged else None

        plan = plans.get(meal_type)
        macro_acc = None
        timing_acc = None
        planned_time = None
        if plan is not None:
            macro_acc = meal_macro_average(
                [(plan.protein, protein), (plan.carbs, carbs), (plan.fat, fat)]
            )
            planned_time = plan.planned_time
            if planned_time and logged_time:
                timing_acc = meal_timing_accuracy(planned_time, logged_time)

        breakdowns.append(MealBreakdown(
            meal_type=meal_type,
            entries=len(entries),
            protein=round(protein, 1),
            carbs=round(carbs, 1),
            fat=round(fat, 1),
            calories=round(calories),
            macro_accuracy=macro_acc,
            timing_accuracy=timing_acc,
            planned_time=planned_time,
            logged_time=logged_time,
        ))
    return breakdowns


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------

def score_exercise(plan: ExercisePlan, sets: Sequence[LoggedSet]) -> ExerciseBreakdown:
    """
    Per-exercise score = mean(set count accuracy, mean rep range accuracy).

    Warm-up sets are ignored. With no working sets the rep part scores 100
    and the set-count part carries the miss.
    """
    working = [s for s in sets if not s.is_warmup]
    set_result = set_count_accuracy(plan.target_sets, len(working))
    rep_results = tuple(
        rep_range_accuracy(plan.rep_range_min, plan.rep_range_max, s.reps) for s in working
    )
    rep_acc = mean_accuracy([r.accuracy for r in rep_results])
    return ExerciseBreakdown(
        exercise_id=plan.exercise_id,
        name=plan.name,
        target_sets=plan.target_sets,
        rep_range_min=plan.rep_range_min,
        rep_range_max=plan.rep_range_max,
        working_sets=len(working),
        warmup_sets=len(sets) - len(working),
        reps=tuple(s.reps for s in working),
        set_result=set_result,
        rep_results=rep_results,
        rep_accuracy=rep_acc,
        rir_accuracy=rir_accuracy(plan.target_rir, [s.rir for s in working]),
        accuracy=round_half_up((set_result.accuracy + rep_acc) / 2),
    )


def breakdown_exercises(
    sets: Sequence[LoggedSet],
    exercise_plans: Sequence[ExercisePlan] = (),
) -> List[ExerciseBreakdown]:
    grouped: "OrderedDict[str, List[LoggedSet]]" = OrderedDict()
    for s in sets:
        grouped.setdefault(s.exercise_id, []).append(s)

    plans = {p.exercise_id: p for p in exercise_plans}
    breakdowns = []
    for exercise_id, exercise_sets in grouped.items():
        plan = plans.get(exercise_id)
        if plan is None:
            logger.debug(f"No plan for exercise {exercise_id}, using default 3 x 8-12")
            plan = ExercisePlan(exercise_id=exercise_id, name=exercise_id)
        breakdowns.append(score_exercise(plan, exercise_sets))
    return breakdowns


def score_training(exercises: Sequence[ExerciseBreakdown]) -> Optional[DomainScore]:
    if not exercises:
        return None
    items = [
        MetricItem(
            label=ex.name,
            result=AccuracyResult(ex.accuracy, tier_for_accuracy(ex.accuracy)),
            planned=ex.target_sets,
            real=ex.working_sets,
            unit="sets",
        )
        for ex in exercises
    ]
    return domain_score(Domain.TRAINING, items)


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

def score_sleep(sleep: Optional[SleepLog]) -> Optional[DomainScore]:
    """Mean of bedtime proximity and hours slept, over whichever parts were logged."""
    if sleep is None or not sleep.has_samples:
        return None
    items = []
    if sleep.real_bedtime is not None:
        accuracy = time_of_day_accuracy(sleep.planned_bedtime, sleep.real_bedtime)
        items.append(MetricItem(
            label="bedtime",
            result=AccuracyResult(accuracy, tier_for_accuracy(accuracy)),
            planned=sleep.planned_bedtime,
            real=sleep.real_bedtime,
        ))
    if sleep.real_hours is not None:
        accuracy = general_accuracy(sleep.planned_hours, sleep.real_hours)
        items.append(MetricItem(
            label="hours",
            result=AccuracyResult(accuracy, tier_for_accuracy(accuracy)),
            planned=sleep.planned_hours,
            real=sleep.real_hours,
            unit="h",
            fulfilment=fulfilment_percent(sleep.planned_hours, sleep.real_hours),
        ))
    return domain_score(Domain.SLEEP, items)


# ---------------------------------------------------------------------------
# Supplements
# ---------------------------------------------------------------------------

def score_supplements(
    active_supplements: Sequence[Supplement],
    supplement_logs: Sequence[SupplementLog],
) -> DomainScore:
    # First entry per id wins, in checklist order
    active: "OrderedDict[str, Supplement]" = OrderedDict()
    for s in active_supplements:
        active.setdefault(s.supplement_id, s)
    logged_ids = {log.supplement_id for log in supplement_logs}
    taken = sum(1 for supplement_id in active if supplement_id in logged_ids)
    missing = tuple(
        s.name or s.supplement_id for supplement_id, s in active.items()
        if supplement_id not in logged_ids
    )
    accuracy = general_accuracy(len(active), taken)
    item = MetricItem(
        label="supplements",
        result=AccuracyResult(accuracy, tier_for_accuracy(accuracy)),
        planned=len(active),
        real=taken,
        missing=missing,
    )
    return domain_score(Domain.SUPPLEMENTS, [item])


# ---------------------------------------------------------------------------
# Day
# ---------------------------------------------------------------------------

def _on_day(day: date, values: Iterable, date_of) -> list:
    return [v for v in values if date_of(v) == day]


def build_day_adherence(
    day: date,
    *,
    goals: NutritionGoals = DEFAULT_GOALS,
    meals: Sequence[LoggedMeal] = (),
    exercise_plans: Sequence[ExercisePlan] = (),
    sets: Sequence[LoggedSet] = (),
    sleep: Optional[SleepLog] = None,
    active_supplements: Sequence[Supplement] = (),
    supplement_logs: Sequence[SupplementLog] = (),
    meal_plans: Sequence[MealPlan] = (),
    weights: AdherenceWeights = DEFAULT_WEIGHTS,
) -> DayAdherence:
    """
    Score one calendar day.

    Logs dated on other days are ignored, so window-wide lists can be passed
    straight through. `sleep` is the day's sleep record (if any); a record
    whose sleep_date names another day is ignored like any other log.
    """
    if sleep is not None and sleep.sleep_date is not None and sleep.sleep_date != day:
        logger.debug(f"Ignoring sleep log for {sleep.sleep_date} when scoring {day}")
        sleep = None

    day_meals = _on_day(day, meals, lambda m: m.logged_date)
    day_sets = _on_day(day, sets, lambda s: s.logged_at.date())
    day_supplement_logs = _on_day(day, supplement_logs, lambda s: s.logged_date)

    exercises = breakdown_exercises(day_sets, exercise_plans)

    scores: List[DomainScore] = []
    for score in (
        score_nutrition(day_meals, goals),
        score_training(exercises),
        score_sleep(sleep),
    ):
        if score is not None:
            scores.append(score)

    # The checklist is only scored on days the user tracked something.
    if active_supplements and (scores or day_supplement_logs):
        scores.append(score_supplements(active_supplements, day_supplement_logs))

    scores = order_domain_scores(scores)
    has_data = bool(scores)
    global_acc = weighted_global_accuracy(scores_by_domain(scores), weights) if has_data else 0

    domain_summary = {s.domain.value: s.accuracy for s in scores}
    logger.debug(f"Adherence {day}: global={global_acc}, domains={domain_summary}")

    return DayAdherence(
        date=day,
        domain_scores=tuple(scores),
        global_accuracy=global_acc,
        has_data=has_data,
        meals=tuple(breakdown_meals(day_meals, meal_plans)),
        exercises=tuple(exercises),
    )
