"""
Pytest configuration and fixtures

Every scoring service is pure, so fixtures are plain value objects:
no database, no network, nothing to clean up.
"""
import pytest
import sys
import os
from datetime import date, datetime

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.day_adherence import (
    ExercisePlan,
    LoggedMeal,
    LoggedSet,
    NutritionGoals,
    SleepLog,
    Supplement,
    SupplementLog,
)


@pytest.fixture
def training_day():
    return date(2026, 3, 2)


@pytest.fixture
def goals():
    """Daily goals used throughout: 150 P / 250 C / 70 F"""
    return NutritionGoals(daily_calories=2200, daily_protein=150, daily_carbs=250, daily_fat=70)


@pytest.fixture
def meals(training_day):
    """Meals summing to 140 P / 260 C / 65 F"""
    return [
        LoggedMeal("breakfast", training_day, protein=40, carbs=90, fat=20, calories=700,
                   logged_at=datetime(2026, 3, 2, 8, 10)),
        LoggedMeal("lunch", training_day, protein=60, carbs=110, fat=25, calories=900,
                   logged_at=datetime(2026, 3, 2, 13, 40)),
        LoggedMeal("lunch", training_day, protein=0, carbs=20, fat=0, calories=80,
                   logged_at=datetime(2026, 3, 2, 13, 55)),
        LoggedMeal("dinner", training_day, protein=40, carbs=40, fat=20, calories=500,
                   logged_at=datetime(2026, 3, 2, 20, 30)),
    ]


@pytest.fixture
def exercise_plans():
    return [
        ExercisePlan("bench", "Bench Press", target_sets=4, rep_range_min=10, rep_range_max=12, target_rir=2),
        ExercisePlan("squat", "Back Squat", target_sets=4, rep_range_min=8, rep_range_max=10),
    ]


@pytest.fixture
def sets(training_day):
    """Bench: warm-up + 4 clean sets. Squat: 3 sets, one 2 reps short."""
    t = lambda h, m: datetime(training_day.year, training_day.month, training_day.day, h, m)
    return [
        LoggedSet("bench", 15, t(10, 0), is_warmup=True),
        LoggedSet("bench", 12, t(10, 5), rir=2),
        LoggedSet("bench", 11, t(10, 10), rir=2),
        LoggedSet("bench", 10, t(10, 15), rir=1),
        LoggedSet("bench", 10, t(10, 20), rir=1),
        LoggedSet("squat", 8, t(10, 40)),
        LoggedSet("squat", 9, t(10, 45)),
        LoggedSet("squat", 6, t(10, 50)),
    ]


@pytest.fixture
def sleep(training_day):
    return SleepLog(planned_bedtime="23:00", planned_hours=8, real_bedtime="23:40",
                    real_hours=7.5, sleep_date=training_day)


@pytest.fixture
def supplements():
    return [Supplement("creatine", "Creatine"), Supplement("omega-3", "Omega 3"),
            Supplement("vitamin-d", "Vitamin D")]


@pytest.fixture
def supplement_logs(training_day):
    return [SupplementLog("creatine", training_day), SupplementLog("omega-3", training_day)]
