"""
Illustrative five-day microcycle.

Shown when a user has too few logged days for a meaningful trend line.
The days are built from synthetic logs through the real builder, so every
score, item and breakdown is consistent with what real data would produce.

Global accuracies by day: 97 (excellent), 92 (good, poor sleep),
57 (critical), 89 (irregular, missed supplement), 100 (perfect).
"""

from datetime import date, datetime, time, timedelta
from typing import List

from services.adherence_aggregate import DEFAULT_WEIGHTS, AdherenceWeights
from services.day_adherence import (
    DayAdherence,
    ExercisePlan,
    LoggedMeal,
    LoggedSet,
    NutritionGoals,
    SleepLog,
    Supplement,
    SupplementLog,
    build_day_adherence,
)

SAMPLE_START = date(2026, 2, 24)

SAMPLE_GOALS = NutritionGoals(daily_calories=2000, daily_protein=150, daily_carbs=250, daily_fat=70)

SAMPLE_SUPPLEMENTS = [
    Supplement("creatine", "Creatine"),
    Supplement("vitamin-d", "Vitamin D"),
]

# (meals [(meal_type, protein, carbs, fat, kcal)], exercise plan, reps per working set,
#  (bedtime, hours), supplements taken)
_SAMPLE_DAYS = [
    (
        [("breakfast", 35, 60, 12, 500), ("lunch", 110, 180, 58, 1500)],
        ExercisePlan("bench-press", "Bench Press", 4, 10, 12),
        [12, 11, 10, 9],
        ("01:30", 7.5),
        ["creatine", "vitamin-d"],
    ),
    (
        [("breakfast", 30, 50, 10, 410), ("lunch", 110, 220, 65, 1900)],
        ExercisePlan("back-squat", "Back Squat", 4, 8, 10),
        [8, 7, 7],
        ("01:30", 6),
        ["creatine", "vitamin-d"],
    ),
    (
        [("lunch", 40, 80, 30, 750)],
        ExercisePlan("barbell-row", "Barbell Row", 4, 10, 12),
        [5, 4],
        ("02:30", 4),
        ["creatine"],
    ),
    (
        [("lunch", 105, 185, 55, 1650), ("snack", 30, 45, 10, 390)],
        ExercisePlan("overhead-press", "Overhead Press", 3, 10, 12),
        [10, 9, 8],
        ("23:10", 8),
        ["creatine"],
    ),
    (
        [("breakfast", 40, 60, 15, 560), ("lunch", 110, 190, 55, 1440)],
        ExercisePlan("deadlift", "Deadlift", 4, 10, 12),
        [12, 11, 11, 10],
        ("23:00", 8),
        ["creatine", "vitamin-d"],
    ),
]


def build_sample_microcycle(
    start: date = SAMPLE_START,
    weights: AdherenceWeights = DEFAULT_WEIGHTS,
) -> List[DayAdherence]:
    """Five consecutive sample days starting at `start`."""
    days = []
    for offset, (meals, plan, reps, (bedtime, hours), taken) in enumerate(_SAMPLE_DAYS):
        day = start + timedelta(days=offset)
        session_start = datetime.combine(day, time(10, 0))
        days.append(build_day_adherence(
            day,
            goals=SAMPLE_GOALS,
            meals=[
                LoggedMeal(meal_type, day, protein, carbs, fat, kcal)
                for meal_type, protein, carbs, fat, kcal in meals
            ],
            exercise_plans=[plan],
            sets=[
                LoggedSet(plan.exercise_id, r, session_start + timedelta(minutes=5 * i))
                for i, r in enumerate(reps)
            ],
            sleep=SleepLog(
                planned_bedtime="23:00",
                planned_hours=8,
                real_bedtime=bedtime,
                real_hours=hours,
                sleep_date=day,
            ),
            active_supplements=SAMPLE_SUPPLEMENTS,
            supplement_logs=[SupplementLog(s, day) for s in taken],
            weights=weights,
        ))
    return days
