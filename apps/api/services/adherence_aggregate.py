"""
Adherence Aggregation

Combines metric scores into domain scores and domain scores into a single
global score for the day.

Architecture:
    MetricItem accuracies (per macro, per exercise, ...)
             ↓  unweighted mean
    DomainScore (nutrition / training / sleep / supplements)
             ↓  weighted sum over PRESENT domains
    Global accuracy (0-100)

Absent domains contribute nothing and the remaining weights are NOT
renormalised: a day with only training logged can score at most
weight_training * 100. The weights are trusted as given; a set that does not
sum to 1.0 is logged, not corrected.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from services.adherence_accuracy import (
    AccuracyResult,
    general_accuracy,
    round_half_up,
)

logger = logging.getLogger(__name__)


class Domain(str, Enum):
    NUTRITION = "nutrition"
    TRAINING = "training"
    SLEEP = "sleep"
    SUPPLEMENTS = "supplements"


# Fixed reporting order for every per-domain listing
DOMAIN_ORDER: Tuple[Domain, ...] = (
    Domain.NUTRITION,
    Domain.TRAINING,
    Domain.SLEEP,
    Domain.SUPPLEMENTS,
)

WEIGHT_SUM_TOLERANCE = 0.001


@dataclass(frozen=True)
class AdherenceWeights:
    """Per-domain weights for the global score. Expected to sum to 1.0."""
    nutrition: float = 0.35
    training: float = 0.35
    sleep: float = 0.15
    supplements: float = 0.15

    def for_domain(self, domain: Domain) -> float:
        return getattr(self, domain.value)

    def total(self) -> float:
        return self.nutrition + self.training + self.sleep + self.supplements

    def is_normalized(self, tolerance: float = WEIGHT_SUM_TOLERANCE) -> bool:
        return abs(self.total() - 1.0) <= tolerance


DEFAULT_WEIGHTS = AdherenceWeights()


@dataclass(frozen=True)
class MetricItem:
    """
    One scored comparison inside a domain.

    planned/real/unit are kept for drill-down and narration. fulfilment is
    the raw real/planned percentage and may exceed 100 (overshoot). missing
    names the checklist entries that were not done.
    """
    label: str
    result: AccuracyResult
    planned: Optional[object] = None
    real: Optional[object] = None
    unit: Optional[str] = None
    fulfilment: Optional[float] = None
    missing: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DomainScore:
    domain: Domain
    accuracy: int
    items: Tuple[MetricItem, ...] = field(default_factory=tuple)


def mean_accuracy(values: Sequence[float], empty: int = 100) -> int:
    """Rounded unweighted mean; `empty` when there is nothing to average."""
    if not values:
        return empty
    return round_half_up(sum(values) / len(values))


def domain_score(domain: Domain, items: Iterable[MetricItem]) -> DomainScore:
    """Domain accuracy is the mean of its items, 100 when nothing was planned."""
    items = tuple(items)
    accuracy = mean_accuracy([item.result.accuracy for item in items])
    return DomainScore(domain=domain, accuracy=accuracy, items=items)


def meal_macro_average(pairs: Sequence[Tuple[float, float]]) -> int:
    """Mean general accuracy over (planned, real) macro pairs. 100 for no pairs."""
    return mean_accuracy([general_accuracy(planned, real) for planned, real in pairs])


def weighted_global_accuracy(
    domain_accuracies: Mapping[Domain, float],
    weights: AdherenceWeights = DEFAULT_WEIGHTS,
) -> int:
    """
    Reduce a sparse map of present domains into the global score.

    round(Σ weight_d × accuracy_d) over the domains in the map only.
    """
    if not weights.is_normalized():
        logger.warning(
            f"Adherence weights sum to {weights.total():.3f}, not 1.0; "
            f"computing weighted sum as given"
        )

    total = 0.0
    for domain, accuracy in domain_accuracies.items():
        total += accuracy * weights.for_domain(domain)
    return round_half_up(total)


def global_accuracy(
    nutrition_acc: Optional[float],
    training_acc: Optional[float],
    sleep_acc: Optional[float],
    supplement_acc: Optional[float],
    weights: AdherenceWeights = DEFAULT_WEIGHTS,
) -> int:
    """
    Weighted global score from the four domain accuracies.

    Pass None for a domain with no data; it is left out of the sum.
    """
    present: Dict[Domain, float] = {}
    for domain, accuracy in zip(
        DOMAIN_ORDER, (nutrition_acc, training_acc, sleep_acc, supplement_acc)
    ):
        if accuracy is not None:
            present[domain] = accuracy
    return weighted_global_accuracy(present, weights)


def scores_by_domain(scores: Iterable[DomainScore]) -> Dict[Domain, int]:
    return {score.domain: score.accuracy for score in scores}


def order_domain_scores(scores: Iterable[DomainScore]) -> List[DomainScore]:
    by_domain = {score.domain: score for score in scores}
    return [by_domain[d] for d in DOMAIN_ORDER if d in by_domain]
