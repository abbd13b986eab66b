"""
Tests for domain and global aggregation

The global score is a weighted sum over present domains only. Absent
domains are never renormalised away, so a partial day is capped by the
weights of what was logged.
"""
import logging

import pytest

from services.adherence_accuracy import AccuracyResult, AccuracyTier
from services.adherence_aggregate import (
    DEFAULT_WEIGHTS,
    DOMAIN_ORDER,
    AdherenceWeights,
    Domain,
    DomainScore,
    MetricItem,
    domain_score,
    global_accuracy,
    meal_macro_average,
    mean_accuracy,
    order_domain_scores,
    scores_by_domain,
    weighted_global_accuracy,
)


def _item(label, accuracy):
    return MetricItem(label=label, result=AccuracyResult(accuracy, AccuracyTier.ON_TARGET))


class TestAdherenceWeights:

    def test_defaults(self):
        assert DEFAULT_WEIGHTS.nutrition == 0.35
        assert DEFAULT_WEIGHTS.training == 0.35
        assert DEFAULT_WEIGHTS.sleep == 0.15
        assert DEFAULT_WEIGHTS.supplements == 0.15
        assert DEFAULT_WEIGHTS.is_normalized()

    def test_for_domain(self):
        weights = AdherenceWeights(0.4, 0.3, 0.2, 0.1)
        assert weights.for_domain(Domain.NUTRITION) == 0.4
        assert weights.for_domain(Domain.SUPPLEMENTS) == 0.1

    def test_not_normalized(self):
        assert not AdherenceWeights(0.5, 0.5, 0.5, 0.5).is_normalized()
        assert AdherenceWeights(0.3335, 0.3335, 0.1665, 0.1665).is_normalized()

    def test_domain_order(self):
        assert DOMAIN_ORDER == (Domain.NUTRITION, Domain.TRAINING, Domain.SLEEP, Domain.SUPPLEMENTS)


class TestMeans:

    def test_mean_accuracy(self):
        assert mean_accuracy([93, 96, 93]) == 94
        assert mean_accuracy([100, 95, 95]) == 97

    def test_mean_accuracy_empty(self):
        assert mean_accuracy([]) == 100
        assert mean_accuracy([], empty=0) == 0

    def test_domain_score_is_item_mean(self):
        score = domain_score(Domain.NUTRITION, [_item("protein", 93), _item("carbs", 96), _item("fat", 93)])
        assert score.accuracy == 94
        assert [i.label for i in score.items] == ["protein", "carbs", "fat"]

    def test_domain_score_without_items(self):
        assert domain_score(Domain.TRAINING, []).accuracy == 100

    def test_meal_macro_average(self):
        assert meal_macro_average([(150, 140), (250, 260), (70, 65)]) == 94
        assert meal_macro_average([]) == 100


class TestGlobalAccuracy:

    def test_all_domains_perfect(self):
        assert global_accuracy(100, 100, 100, 100) == 100

    def test_all_domains_present(self):
        # 94*.35 + 97*.35 + 97*.15 + 67*.15 = 91.45
        assert global_accuracy(94, 97, 97, 67) == 91

    def test_training_only_is_not_renormalised(self):
        assert global_accuracy(None, 100, None, None) == 35
        assert global_accuracy(None, 97, None, None) == 34

    def test_nutrition_and_sleep_only(self):
        # 80*.35 + 60*.15 = 37
        assert global_accuracy(80, None, 60, None) == 37

    def test_no_domains(self):
        assert global_accuracy(None, None, None, None) == 0

    def test_zero_accuracy_counts_as_present(self):
        assert global_accuracy(0, 100, 100, 100) == 65

    def test_custom_weights(self):
        weights = AdherenceWeights(nutrition=0.5, training=0.5, sleep=0.0, supplements=0.0)
        assert global_accuracy(80, 100, 0, 0, weights) == 90

    def test_unnormalised_weights_warn_but_compute(self, caplog):
        weights = AdherenceWeights(0.5, 0.5, 0.5, 0.5)
        with caplog.at_level(logging.WARNING):
            assert weighted_global_accuracy({Domain.NUTRITION: 100, Domain.SLEEP: 100}, weights) == 100
        assert "sum to 2.000" in caplog.text

    def test_normalised_weights_do_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING):
            weighted_global_accuracy({Domain.NUTRITION: 90})
        assert caplog.text == ""


class TestOrdering:

    def test_order_domain_scores(self):
        scores = [
            DomainScore(Domain.SUPPLEMENTS, 50),
            DomainScore(Domain.NUTRITION, 90),
            DomainScore(Domain.SLEEP, 70),
        ]
        ordered = order_domain_scores(scores)
        assert [s.domain for s in ordered] == [Domain.NUTRITION, Domain.SLEEP, Domain.SUPPLEMENTS]

    def test_scores_by_domain(self):
        scores = [DomainScore(Domain.TRAINING, 88), DomainScore(Domain.SLEEP, 70)]
        assert scores_by_domain(scores) == {Domain.TRAINING: 88, Domain.SLEEP: 70}

    @pytest.mark.parametrize("domain", list(Domain))
    def test_single_domain_weight_cap(self, domain):
        assert weighted_global_accuracy({domain: 100}) == round(DEFAULT_WEIGHTS.for_domain(domain) * 100)
