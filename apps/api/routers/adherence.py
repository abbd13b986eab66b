"""
Adherence API Endpoints

Stateless scoring of planned vs. actual behaviour:
- Day adherence (per-domain scores, global score, drill-down, diagnostic)
- Microcycle adherence (average, best/worst day, chart series, diagnostic)
- Single metric accuracy for ad-hoc comparisons

Callers send already-materialised logs; nothing is read from or written to
storage here.
"""
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter

from core.adherence_config import adherence_config
from core.exceptions import InvalidDateRangeError, InvalidWeightsError, ValidationError
from schemas import (
    AccuracyRequest,
    AdherenceWeightsIn,
    DayAdherenceRequest,
    ExercisePlanIn,
    LoggedMealIn,
    LoggedSetIn,
    MealPlanIn,
    MetricSampleIn,
    MicrocycleAdherenceRequest,
    NutritionGoalsIn,
    SleepLogIn,
    SupplementIn,
    SupplementLogIn,
)
from services.adherence_accuracy import MetricKind, MetricSample, evaluate_sample, parse_rep_range
from services.adherence_aggregate import AdherenceWeights
from services.adherence_narrator import Diagnostic, narrate_day, narrate_microcycle
from services.day_adherence import (
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
from services.microcycle_adherence import (
    accuracy_series,
    build_microcycle_days,
    microcycle_date_range,
    rollup_microcycle,
    select_microcycle_days,
)
from services.sample_microcycle import build_sample_microcycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/adherence", tags=["adherence"])


# ---------------------------------------------------------------------------
# Request → engine inputs
# ---------------------------------------------------------------------------

def _resolve_weights(weights: Optional[AdherenceWeightsIn]) -> AdherenceWeights:
    if weights is None:
        return adherence_config.weights()
    resolved = AdherenceWeights(**weights.model_dump())
    if not resolved.is_normalized(adherence_config.weight_sum_tolerance):
        raise InvalidWeightsError(resolved.total())
    return resolved


def _resolve_goals(goals: Optional[NutritionGoalsIn]) -> NutritionGoals:
    if goals is None:
        return adherence_config.goals()
    return NutritionGoals(**goals.model_dump())


def _to_exercise_plan(plan: ExercisePlanIn) -> ExercisePlan:
    default_range = (adherence_config.default_rep_range_min, adherence_config.default_rep_range_max)
    if plan.rep_range_min is not None and plan.rep_range_max is not None:
        rep_min, rep_max = sorted((plan.rep_range_min, plan.rep_range_max))
    else:
        rep_min, rep_max = parse_rep_range(plan.reps, default_range)
    target_sets = plan.target_sets
    if target_sets is None:
        target_sets = adherence_config.default_target_sets
    return ExercisePlan(
        exercise_id=plan.exercise_id,
        name=plan.name,
        target_sets=target_sets,
        rep_range_min=rep_min,
        rep_range_max=rep_max,
        target_rir=plan.target_rir,
    )


def _to_sleep(sleep: Optional[SleepLogIn]) -> Optional[SleepLog]:
    if sleep is None:
        return None
    return SleepLog(
        planned_bedtime=sleep.planned_bedtime or adherence_config.default_bedtime,
        planned_hours=(
            sleep.planned_hours if sleep.planned_hours is not None
            else adherence_config.default_sleep_hours
        ),
        real_bedtime=sleep.real_bedtime,
        real_hours=sleep.real_hours,
        sleep_date=sleep.sleep_date,
    )


def _to_meals(meals: List[LoggedMealIn]) -> List[LoggedMeal]:
    return [LoggedMeal(**m.model_dump()) for m in meals]


def _to_meal_plans(plans: List[MealPlanIn]) -> List[MealPlan]:
    return [MealPlan(**p.model_dump()) for p in plans]


def _to_sets(sets: List[LoggedSetIn]) -> List[LoggedSet]:
    return [LoggedSet(**s.model_dump()) for s in sets]


def _to_supplements(supplements: List[SupplementIn]) -> List[Supplement]:
    return [Supplement(**s.model_dump()) for s in supplements]


def _to_supplement_logs(logs: List[SupplementLogIn]) -> List[SupplementLog]:
    return [SupplementLog(**log.model_dump()) for log in logs]


def _to_sample(sample: MetricSampleIn) -> MetricSample:
    planned = sample.planned
    if sample.kind == MetricKind.REP_RANGE:
        if not isinstance(planned, list) or len(planned) != 2:
            raise ValidationError(
                f"{sample.label}: rep_range planned value must be [min, max]", field="planned"
            )
        planned = (min(planned), max(planned))
    elif isinstance(planned, list):
        raise ValidationError(
            f"{sample.label}: {sample.kind.value} planned value must be a single value",
            field="planned",
        )
    return MetricSample(
        kind=sample.kind,
        planned=planned,
        real=sample.real,
        label=sample.label,
        unit=sample.unit,
    )


def _serialize_diagnostic(diagnostic: Diagnostic) -> Dict[str, Any]:
    data = asdict(diagnostic)
    data["text"] = diagnostic.text()
    return data


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/day")
def score_day(payload: DayAdherenceRequest):
    """
    Score one day of logs against the plan.

    Returns the DayAdherence (domain scores, global score, meal and exercise
    breakdowns) and its diagnostic narrative.
    """
    weights = _resolve_weights(payload.weights)
    day = build_day_adherence(
        payload.date,
        goals=_resolve_goals(payload.goals),
        meals=_to_meals(payload.meals),
        meal_plans=_to_meal_plans(payload.meal_plans),
        exercise_plans=[_to_exercise_plan(p) for p in payload.exercise_plans],
        sets=_to_sets(payload.sets),
        sleep=_to_sleep(payload.sleep),
        active_supplements=_to_supplements(payload.active_supplements),
        supplement_logs=_to_supplement_logs(payload.supplement_logs),
        weights=weights,
    )
    logger.info(
        f"Scored day {day.date}: global={day.global_accuracy}, has_data={day.has_data}"
    )
    return {
        "day": asdict(day),
        "diagnostic": _serialize_diagnostic(narrate_day(day)),
    }


@router.post("/microcycle")
def score_microcycle(payload: MicrocycleAdherenceRequest):
    """
    Score every day of a microcycle and roll them up.

    With too few logged days (and use_sample_fallback set) the illustrative
    sample microcycle is returned instead, flagged with is_sample.
    """
    if payload.end is not None and payload.end < payload.start:
        raise InvalidDateRangeError(payload.start, payload.end)
    if any(log.sleep_date is None for log in payload.sleep_logs):
        raise ValidationError("Every microcycle sleep log needs a sleep_date", field="sleep_logs")

    weights = _resolve_weights(payload.weights)
    dates = microcycle_date_range(
        payload.start,
        end=payload.end,
        duration_weeks=payload.duration_weeks,
        today=payload.today,
    )
    real_days = build_microcycle_days(
        dates,
        goals=_resolve_goals(payload.goals),
        meals=_to_meals(payload.meals),
        meal_plans=_to_meal_plans(payload.meal_plans),
        exercise_plans=[_to_exercise_plan(p) for p in payload.exercise_plans],
        sets=_to_sets(payload.sets),
        sleep_logs=[s for s in (_to_sleep(log) for log in payload.sleep_logs) if s is not None],
        active_supplements=_to_supplements(payload.active_supplements),
        supplement_logs=_to_supplement_logs(payload.supplement_logs),
        weights=weights,
    )

    sample_days = build_sample_microcycle(weights=weights) if payload.use_sample_fallback else None
    days, is_sample = select_microcycle_days(
        real_days, sample_days, adherence_config.min_days_for_trend
    )
    microcycle = rollup_microcycle(days, is_sample=is_sample)

    logger.info(
        f"Scored microcycle {payload.start} ({len(dates)} days): "
        f"avg={microcycle.average_accuracy}, sample={is_sample}"
    )
    return {
        "microcycle": asdict(microcycle),
        "series": [asdict(point) for point in accuracy_series(microcycle)],
        "diagnostic": _serialize_diagnostic(narrate_microcycle(microcycle)),
    }


@router.post("/accuracy")
def score_samples(payload: AccuracyRequest):
    """Evaluate ad-hoc planned/real comparisons."""
    results = []
    for sample in payload.samples:
        metric = _to_sample(sample)
        try:
            result = evaluate_sample(metric)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{sample.label}: {e}", field="samples")
        results.append({
            "label": metric.label,
            "kind": metric.kind.value,
            "unit": metric.unit,
            "accuracy": result.accuracy,
            "tier": result.tier.value,
        })
    return {"results": results}
