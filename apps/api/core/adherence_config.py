"""
Adherence Configuration

Backend-configurable defaults for adherence scoring.
Weights, fallback goals and the trend threshold can be adjusted via
environment variables without code changes.

The scoring services never read this directly; the API layer turns it into
explicit arguments.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.adherence_aggregate import AdherenceWeights
from services.day_adherence import NutritionGoals


class AdherenceConfig(BaseSettings):
    """
    Configurable adherence settings.

    These can be adjusted via environment variables (ADHERENCE_ prefix).
    """
    model_config = SettingsConfigDict(env_prefix="ADHERENCE_", case_sensitive=False)

    # Global score weights per domain. Must sum to 1.0.
    weight_nutrition: float = 0.35
    weight_training: float = 0.35
    weight_sleep: float = 0.15
    weight_supplements: float = 0.15

    # How far the weights may drift from 1.0 before the API rejects them
    weight_sum_tolerance: float = 0.001

    # Goals used when the caller sends none
    default_daily_calories: float = 2000
    default_daily_protein: float = 150
    default_daily_carbs: float = 250
    default_daily_fat: float = 70

    # Plan used for logged exercises that have no plan entry
    default_target_sets: int = 3
    default_rep_range_min: int = 8
    default_rep_range_max: int = 12

    # Sleep plan used when a sleep log omits it
    default_bedtime: str = "23:00"
    default_sleep_hours: float = 8

    # Fewer days with data than this falls back to the sample microcycle
    min_days_for_trend: int = 2

    def weights(self) -> AdherenceWeights:
        return AdherenceWeights(
            nutrition=self.weight_nutrition,
            training=self.weight_training,
            sleep=self.weight_sleep,
            supplements=self.weight_supplements,
        )

    def goals(self) -> NutritionGoals:
        return NutritionGoals(
            daily_calories=self.default_daily_calories,
            daily_protein=self.default_daily_protein,
            daily_carbs=self.default_daily_carbs,
            daily_fat=self.default_daily_fat,
        )


# Global config instance
adherence_config = AdherenceConfig()
