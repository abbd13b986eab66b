"""
Tests for the day adherence builder

Fixture day (see conftest):
- nutrition: 140/260/65 vs 150/250/70 -> 93, 96, 93 -> 94
- training: bench 4/4 clean -> 100, squat 3/4 with one set 2 short -> 94 -> 97
- sleep: 23:40 vs 23:00 -> 100, 7.5h vs 8h -> 94 -> 97
- supplements: 2 of 3 -> 67
- global: 94*.35 + 97*.35 + 97*.15 + 67*.15 = 91.45 -> 91
"""
from datetime import date, datetime, timedelta, timezone

from services.adherence_accuracy import AccuracyTier
from services.adherence_aggregate import AdherenceWeights, Domain
from services.day_adherence import (
    ExercisePlan,
    LoggedMeal,
    LoggedSet,
    MealPlan,
    NutritionGoals,
    SleepLog,
    Supplement,
    SupplementLog,
    breakdown_exercises,
    breakdown_meals,
    build_day_adherence,
    score_exercise,
    score_nutrition,
    score_sleep,
    score_supplements,
    score_training,
)


class TestScoreNutrition:

    def test_summed_macros_against_goals(self, meals, goals):
        score = score_nutrition(meals, goals)
        assert score.domain == Domain.NUTRITION
        assert score.accuracy == 94
        by_label = {i.label: i for i in score.items}
        assert by_label["protein"].result.accuracy == 93
        assert by_label["carbs"].result.accuracy == 96
        assert by_label["fat"].result.accuracy == 93
        assert by_label["carbs"].real == 260
        assert by_label["carbs"].fulfilment == 104.0

    def test_no_meals_is_absent(self, goals):
        assert score_nutrition([], goals) is None

    def test_calories_do_not_affect_score(self, meals, goals):
        heavier = [
            LoggedMeal(m.meal_type, m.logged_date, m.protein, m.carbs, m.fat, m.calories * 3)
            for m in meals
        ]
        assert score_nutrition(heavier, goals).accuracy == 94

    def test_zero_goal_with_intake(self, training_day):
        goals = NutritionGoals(daily_protein=0, daily_carbs=0, daily_fat=0)
        score = score_nutrition([LoggedMeal("lunch", training_day, protein=10)], goals)
        # protein 0/10 -> 0, carbs and fat 0/0 -> 100
        assert score.accuracy == 67


class TestBreakdownMeals:

    def test_groups_by_meal_type_in_first_seen_order(self, meals):
        breakdowns = breakdown_meals(meals)
        assert [b.meal_type for b in breakdowns] == ["breakfast", "lunch", "dinner"]
        lunch = breakdowns[1]
        assert lunch.entries == 2
        assert lunch.carbs == 130
        assert lunch.calories == 980
        assert lunch.logged_time == "13:40"
        assert lunch.macro_accuracy is None

    def test_mixed_naive_and_aware_timestamps(self, training_day):
        meals = [
            LoggedMeal("lunch", training_day, protein=30, logged_at=datetime(2026, 3, 2, 13, 10, tzinfo=timezone.utc)),
            LoggedMeal("lunch", training_day, protein=30, logged_at=datetime(2026, 3, 2, 13, 0)),
        ]
        (lunch,) = breakdown_meals(meals, [MealPlan("lunch", 60, 0, 0, planned_time="13:00")])
        assert lunch.logged_time == "13:00"
        assert lunch.timing_accuracy == 100

    def test_meal_plan_adds_macro_and_timing_accuracy(self, meals):
        plans = [MealPlan("lunch", protein=60, carbs=130, fat=25, planned_time="13:00")]
        lunch = breakdown_meals(meals, plans)[1]
        assert lunch.macro_accuracy == 100
        # 40 minutes late
        assert lunch.timing_accuracy == 60
        assert lunch.planned_time == "13:00"


class TestScoreExercise:

    def test_clean_exercise(self, exercise_plans, sets):
        bench = score_exercise(exercise_plans[0], [s for s in sets if s.exercise_id == "bench"])
        assert bench.working_sets == 4
        assert bench.warmup_sets == 1
        assert bench.reps == (12, 11, 10, 10)
        assert bench.set_result.accuracy == 100
        assert bench.accuracy == 100
        # RIR 2, 2, 1, 1 vs target 2 -> 100, 100, 75, 75
        assert bench.rir_accuracy == 88

    def test_short_set_and_short_reps(self, exercise_plans, sets):
        squat = score_exercise(exercise_plans[1], [s for s in sets if s.exercise_id == "squat"])
        assert squat.set_result.accuracy == 90
        assert [r.accuracy for r in squat.rep_results] == [100, 100, 90]
        assert squat.rep_accuracy == 97
        assert squat.accuracy == 94

    def test_only_warmups(self, training_day):
        plan = ExercisePlan("curl", "Curl", target_sets=3)
        warmups = [LoggedSet("curl", 20, datetime(2026, 3, 2, 9, 0), is_warmup=True)]
        result = score_exercise(plan, warmups)
        assert result.working_sets == 0
        assert result.set_result.tier == AccuracyTier.MAJOR_DEVIATION
        # set 80, reps 100 (nothing to judge)
        assert result.accuracy == 90

    def test_unplanned_exercise_uses_default_plan(self, training_day):
        t = datetime(2026, 3, 2, 11, 0)
        sets = [LoggedSet("dips", 10, t), LoggedSet("dips", 9, t), LoggedSet("dips", 8, t)]
        (dips,) = breakdown_exercises(sets, [])
        assert dips.name == "dips"
        assert (dips.target_sets, dips.rep_range_min, dips.rep_range_max) == (3, 8, 12)
        assert dips.accuracy == 100

    def test_training_domain_is_mean_of_exercises(self, exercise_plans, sets):
        score = score_training(breakdown_exercises(sets, exercise_plans))
        assert score.accuracy == 97
        assert [i.label for i in score.items] == ["Bench Press", "Back Squat"]

    def test_no_sets_is_absent(self):
        assert score_training([]) is None


class TestScoreSleep:

    def test_bedtime_and_hours(self, sleep):
        score = score_sleep(sleep)
        assert score.accuracy == 97
        assert [i.label for i in score.items] == ["bedtime", "hours"]

    def test_hours_only(self):
        score = score_sleep(SleepLog(real_hours=6))
        assert score.accuracy == 75
        assert [i.label for i in score.items] == ["hours"]

    def test_bedtime_only_across_midnight(self):
        assert score_sleep(SleepLog(real_bedtime="00:05")).accuracy == 90

    def test_plan_without_samples_is_absent(self):
        assert score_sleep(SleepLog()) is None
        assert score_sleep(None) is None


class TestScoreSupplements:

    def test_partial(self, supplements, supplement_logs):
        score = score_supplements(supplements, supplement_logs)
        assert score.accuracy == 67
        assert score.items[0].planned == 3
        assert score.items[0].real == 2

    def test_duplicate_and_inactive_logs_ignored(self, supplements, training_day):
        logs = [
            SupplementLog("creatine", training_day),
            SupplementLog("creatine", training_day),
            SupplementLog("melatonin", training_day),
        ]
        assert score_supplements(supplements, logs).items[0].real == 1

    def test_missed_supplements_named_in_checklist_order(self, supplements, supplement_logs):
        item = score_supplements(supplements, supplement_logs).items[0]
        assert item.missing == ("Vitamin D",)

    def test_missing_falls_back_to_id_and_dedupes(self, training_day):
        active = [Supplement("zinc"), Supplement("zinc", "Zinc"), Supplement("magnesium", "Magnesium")]
        item = score_supplements(active, [SupplementLog("magnesium", training_day)]).items[0]
        assert item.planned == 2
        assert item.real == 1
        assert item.missing == ("zinc",)

    def test_none_active(self, supplement_logs):
        # Nothing planned and nothing active can be taken
        assert score_supplements([], supplement_logs).accuracy == 100


class TestBuildDayAdherence:

    def test_full_day(self, training_day, goals, meals, exercise_plans, sets, sleep,
                      supplements, supplement_logs):
        day = build_day_adherence(
            training_day,
            goals=goals,
            meals=meals,
            exercise_plans=exercise_plans,
            sets=sets,
            sleep=sleep,
            active_supplements=supplements,
            supplement_logs=supplement_logs,
        )
        assert day.has_data
        assert [s.domain for s in day.domain_scores] == [
            Domain.NUTRITION, Domain.TRAINING, Domain.SLEEP, Domain.SUPPLEMENTS,
        ]
        assert day.domain_accuracy(Domain.NUTRITION) == 94
        assert day.domain_accuracy(Domain.TRAINING) == 97
        assert day.domain_accuracy(Domain.SLEEP) == 97
        assert day.domain_accuracy(Domain.SUPPLEMENTS) == 67
        assert day.global_accuracy == 91
        assert len(day.meals) == 3
        assert len(day.exercises) == 2

    def test_empty_day(self, training_day):
        day = build_day_adherence(training_day)
        assert not day.has_data
        assert day.global_accuracy == 0
        assert day.domain_scores == ()

    def test_training_only(self, training_day, exercise_plans, sets):
        day = build_day_adherence(training_day, exercise_plans=exercise_plans, sets=sets)
        assert [s.domain for s in day.domain_scores] == [Domain.TRAINING]
        assert day.domain(Domain.NUTRITION) is None
        # 97 * .35
        assert day.global_accuracy == 34

    def test_logs_from_other_days_are_ignored(self, training_day, goals, meals, sets, exercise_plans):
        tomorrow = training_day + timedelta(days=1)
        day = build_day_adherence(tomorrow, goals=goals, meals=meals, sets=sets,
                                  exercise_plans=exercise_plans)
        assert not day.has_data

    def test_supplement_checklist_alone_is_not_tracking(self, training_day, supplements):
        day = build_day_adherence(training_day, active_supplements=supplements)
        assert not day.has_data

    def test_supplement_checklist_scored_on_tracked_day(self, training_day, supplements, sleep):
        day = build_day_adherence(training_day, sleep=sleep, active_supplements=supplements)
        assert day.domain_accuracy(Domain.SUPPLEMENTS) == 0

    def test_supplement_log_alone_counts(self, training_day, supplements, supplement_logs):
        day = build_day_adherence(
            training_day, active_supplements=supplements, supplement_logs=supplement_logs
        )
        assert [s.domain for s in day.domain_scores] == [Domain.SUPPLEMENTS]
        # 67 * .15 = 10.05
        assert day.global_accuracy == 10

    def test_warmups_only_still_count_as_training(self, training_day):
        sets = [LoggedSet("bench", 15, datetime(2026, 3, 2, 10, 0), is_warmup=True)]
        day = build_day_adherence(training_day, sets=sets)
        assert day.domain(Domain.TRAINING) is not None

    def test_custom_weights(self, training_day, goals, meals):
        weights = AdherenceWeights(nutrition=1.0, training=0.0, sleep=0.0, supplements=0.0)
        day = build_day_adherence(training_day, goals=goals, meals=meals, weights=weights)
        assert day.global_accuracy == 94

    def test_sleep_without_samples_is_absent(self, training_day):
        day = build_day_adherence(training_day, sleep=SleepLog(sleep_date=training_day))
        assert day.domain(Domain.SLEEP) is None
        assert not day.has_data

    def test_sleep_log_from_another_day_is_ignored(self, training_day):
        sleep = SleepLog(real_bedtime="23:00", real_hours=8, sleep_date=date(2026, 1, 1))
        day = build_day_adherence(training_day, sleep=sleep)
        assert day.domain(Domain.SLEEP) is None
        assert not day.has_data
        assert day.global_accuracy == 0

    def test_undated_sleep_log_is_taken_as_the_days(self, training_day):
        day = build_day_adherence(training_day, sleep=SleepLog(real_bedtime="23:00", real_hours=8))
        assert day.domain_accuracy(Domain.SLEEP) == 100
