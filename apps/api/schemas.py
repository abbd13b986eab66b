from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional, List, Union

from services.adherence_accuracy import MetricKind

# "HH:MM", 24-hour
CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class NutritionGoalsIn(BaseModel):
    daily_calories: float = Field(default=2000, ge=0)
    daily_protein: float = Field(default=150, ge=0)
    daily_carbs: float = Field(default=250, ge=0)
    daily_fat: float = Field(default=70, ge=0)


class LoggedMealIn(BaseModel):
    meal_type: str
    logged_date: date
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    calories: float = Field(default=0, ge=0)
    logged_at: Optional[datetime] = None
    food_name: Optional[str] = None


class MealPlanIn(BaseModel):
    """Per-meal targets (drill-down only)"""
    meal_type: str
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    planned_time: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)


class ExercisePlanIn(BaseModel):
    """
    Planned exercise. The rep range can be given as min/max or as a
    prescription string like "10-12".
    """
    exercise_id: str
    name: str
    target_sets: Optional[int] = Field(default=None, ge=0)
    rep_range_min: Optional[int] = Field(default=None, ge=1)
    rep_range_max: Optional[int] = Field(default=None, ge=1)
    reps: Optional[str] = None
    target_rir: Optional[float] = Field(default=None, ge=0)


class LoggedSetIn(BaseModel):
    exercise_id: str
    reps: int = Field(ge=0)
    logged_at: datetime
    is_warmup: bool = False
    weight: Optional[float] = None
    rir: Optional[float] = Field(default=None, ge=0)


class SleepLogIn(BaseModel):
    sleep_date: Optional[date] = None  # Required in microcycle sleep_logs
    planned_bedtime: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    planned_hours: Optional[float] = Field(default=None, ge=0)
    real_bedtime: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    real_hours: Optional[float] = Field(default=None, ge=0)


class SupplementIn(BaseModel):
    supplement_id: str
    name: str = ""


class SupplementLogIn(BaseModel):
    supplement_id: str
    logged_date: date


class AdherenceWeightsIn(BaseModel):
    nutrition: float = Field(ge=0)
    training: float = Field(ge=0)
    sleep: float = Field(ge=0)
    supplements: float = Field(ge=0)


class DayAdherenceRequest(BaseModel):
    date: date
    goals: Optional[NutritionGoalsIn] = None
    meals: List[LoggedMealIn] = []
    meal_plans: List[MealPlanIn] = []
    exercise_plans: List[ExercisePlanIn] = []
    sets: List[LoggedSetIn] = []
    sleep: Optional[SleepLogIn] = None
    active_supplements: List[SupplementIn] = []
    supplement_logs: List[SupplementLogIn] = []
    weights: Optional[AdherenceWeightsIn] = None


class MicrocycleAdherenceRequest(BaseModel):
    start: date
    end: Optional[date] = None
    duration_weeks: int = Field(default=1, ge=1, le=12)
    today: Optional[date] = None  # Defaults to the server's date
    goals: Optional[NutritionGoalsIn] = None
    meals: List[LoggedMealIn] = []
    meal_plans: List[MealPlanIn] = []
    exercise_plans: List[ExercisePlanIn] = []
    sets: List[LoggedSetIn] = []
    sleep_logs: List[SleepLogIn] = []
    active_supplements: List[SupplementIn] = []
    supplement_logs: List[SupplementLogIn] = []
    weights: Optional[AdherenceWeightsIn] = None
    use_sample_fallback: bool = True


class MetricSampleIn(BaseModel):
    kind: MetricKind
    planned: Union[float, str, List[int]]
    real: Union[float, str]
    label: str
    unit: Optional[str] = None


class AccuracyRequest(BaseModel):
    samples: List[MetricSampleIn]
