"""
Adherence Diagnostic Narrator

Rule-based text for a scored day or microcycle. No free text generation:
every sentence is a fixed template picked by tier and filled with numbers
that were already computed.

    global accuracy ──► verdict tier ──► opening template
    each domain     ──► no data / strength / on track / deviation
                         (deviations enumerate the failing items, worst first)
    verdict tier    ──► closing recommendation

Every domain is always addressed; a domain without data gets the fixed
"no data logged" line instead of being skipped.

Each output line carries a stable `key` so callers and tests can work with
the structure instead of matching prose.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from services.adherence_accuracy import AccuracyTier, rep_deviation, signed_clock_offset_minutes
from services.adherence_aggregate import DOMAIN_ORDER, Domain, DomainScore, MetricItem
from services.day_adherence import DayAdherence, ExerciseBreakdown
from services.microcycle_adherence import MicrocycleAdherence

logger = logging.getLogger(__name__)


class VerdictTier(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    IRREGULAR = "irregular"
    CRITICAL = "critical"


VERDICT_THRESHOLDS: List[Tuple[int, VerdictTier]] = [
    (95, VerdictTier.EXCELLENT),
    (90, VerdictTier.GOOD),
    (75, VerdictTier.IRREGULAR),
]

# Below this a domain's failing items are enumerated
DEVIATION_THRESHOLDS: Dict[Domain, int] = {
    Domain.NUTRITION: 90,
    Domain.TRAINING: 90,
    Domain.SLEEP: 90,
    Domain.SUPPLEMENTS: 90,
}
STRENGTH_THRESHOLD = 95

DOMAIN_NAMES: Dict[Domain, str] = {
    Domain.NUTRITION: "Nutrition",
    Domain.TRAINING: "Training",
    Domain.SLEEP: "Sleep",
    Domain.SUPPLEMENTS: "Supplements",
}

DEFAULT_DATE_FORMAT = "%a %d %b"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

DAY_OPENING = {
    VerdictTier.EXCELLENT: "Excellent day: {accuracy}% adherence to the plan on {date}.",
    VerdictTier.GOOD: "Good day: {accuracy}% adherence on {date}, with minor deviations.",
    VerdictTier.IRREGULAR: "Irregular day: {accuracy}% adherence on {date}; several parts of the plan slipped.",
    VerdictTier.CRITICAL: "Critical day: {accuracy}% adherence on {date}; most of the plan was not followed.",
}

DAY_CLOSING = {
    VerdictTier.EXCELLENT: "Keep repeating exactly this.",
    VerdictTier.GOOD: "Good day, with room to improve: tighten the points above.",
    VerdictTier.IRREGULAR: "There are important aspects to adjust; start with the lowest domain.",
    VerdictTier.CRITICAL: "Reset tomorrow with the basics: planned meals, planned sets and your bedtime.",
}

DAY_NO_DATA = "No data logged on {date}."

DOMAIN_NO_DATA = "{domain}: no data logged."
DOMAIN_STRENGTH = "{domain}: on target ({accuracy}%)."
DOMAIN_ON_TRACK = "{domain}: on track ({accuracy}%) with minor deviations."
DOMAIN_DEVIATION = "{domain} below target ({accuracy}%): {details}."
DOMAIN_DEVIATION_BARE = "{domain} below target ({accuracy}%)."

MICROCYCLE_OPENING = {
    VerdictTier.EXCELLENT: "Microcycle ({days} days logged): excellent, {accuracy}% average adherence.",
    VerdictTier.GOOD: "Microcycle ({days} days logged): good, {accuracy}% average adherence.",
    VerdictTier.IRREGULAR: "Microcycle ({days} days logged): irregular, {accuracy}% average adherence.",
    VerdictTier.CRITICAL: "Microcycle ({days} days logged): critical, {accuracy}% average adherence.",
}

MICROCYCLE_CLOSING = {
    VerdictTier.EXCELLENT: "Outstanding microcycle. Keep this consistency into the next block.",
    VerdictTier.GOOD: "Good microcycle overall. Adjust the weak points for the next one.",
    VerdictTier.IRREGULAR: "Significant room for improvement. Review the lowest days to find patterns.",
    VerdictTier.CRITICAL: "The plan was not followed through most of this block. Rebuild it one domain at a time.",
}

MICROCYCLE_STRENGTH = {
    Domain.NUTRITION: "Nutrition: excellent ({accuracy}% average).",
    Domain.TRAINING: "Training: flawless execution ({accuracy}% average).",
    Domain.SLEEP: "Sleep: consistent schedule ({accuracy}% average).",
    Domain.SUPPLEMENTS: "Supplements: taken as planned ({accuracy}% average).",
}

MICROCYCLE_ON_TRACK = "{domain}: on track ({accuracy}% average)."

MICROCYCLE_DEVIATION = {
    Domain.NUTRITION: "Nutrition: below target ({accuracy}% average).",
    Domain.TRAINING: "Training: deviations from the prescribed sets and reps ({accuracy}% average).",
    Domain.SLEEP: "Sleep: irregular schedule ({accuracy}% average).",
    Domain.SUPPLEMENTS: "Supplements: inconsistent ({accuracy}% average).",
}

MICROCYCLE_BEST_DAY = "Best day: {date} ({accuracy}%)."
MICROCYCLE_WORST_DAY = "Lowest day: {date} ({accuracy}%)."
MICROCYCLE_EMPTY = "Not enough data yet to analyse this microcycle."
MICROCYCLE_SAMPLE = "Showing sample data until more days are logged."


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiagnosticLine:
    key: str
    text: str
    domain: Optional[Domain] = None


@dataclass(frozen=True)
class Diagnostic:
    scope: str  # "day" | "microcycle"
    tier: Optional[VerdictTier]
    accuracy: int
    lines: Tuple[DiagnosticLine, ...]

    def text(self) -> str:
        return " ".join(line.text for line in self.lines)

    def keys(self) -> List[str]:
        return [line.key for line in self.lines]

    def line_for(self, domain: Domain) -> Optional[DiagnosticLine]:
        for line in self.lines:
            if line.domain == domain:
                return line
        return None


class _LineBuilder:
    def __init__(self) -> None:
        self._lines: List[DiagnosticLine] = []

    def add(self, key: str, text: str, domain: Optional[Domain] = None) -> "_LineBuilder":
        self._lines.append(DiagnosticLine(key=key, text=text, domain=domain))
        return self

    def build(self) -> Tuple[DiagnosticLine, ...]:
        return tuple(self._lines)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def verdict_tier(accuracy: float) -> VerdictTier:
    for threshold, tier in VERDICT_THRESHOLDS:
        if accuracy >= threshold:
            return tier
    return VerdictTier.CRITICAL


def _num(value) -> str:
    value = float(value)
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"


def _signed(value) -> str:
    value = float(value)
    sign = "+" if value > 0 else ""
    return f"{sign}{_num(value)}"


def _describe_quantity(item: MetricItem) -> str:
    unit = item.unit or ""
    diff = float(item.real) - float(item.planned)
    return (
        f"{item.label} {_num(item.real)}{unit} vs {_num(item.planned)}{unit} planned "
        f"({_signed(diff)}{unit}, {item.result.accuracy}%)"
    )


def _describe_bedtime(item: MetricItem) -> str:
    offset = signed_clock_offset_minutes(str(item.planned), str(item.real))
    direction = "late" if offset > 0 else "early"
    return (
        f"bedtime {item.real} vs {item.planned} planned "
        f"({abs(offset)} min {direction}, {item.result.accuracy}%)"
    )


def _describe_hours(item: MetricItem) -> str:
    diff = float(item.real) - float(item.planned)
    return (
        f"{_num(item.real)}h slept vs {_num(item.planned)}h planned "
        f"({_signed(diff)}h, {item.result.accuracy}%)"
    )


def _describe_exercise(ex: ExerciseBreakdown) -> Optional[str]:
    parts = []
    set_diff = ex.working_sets - ex.target_sets
    if set_diff < 0:
        parts.append(f"{ex.working_sets}/{ex.target_sets} sets ({-set_diff} short)")
    elif set_diff > 0:
        parts.append(f"{ex.working_sets}/{ex.target_sets} sets ({set_diff} over)")

    deviations = [rep_deviation(ex.rep_range_min, ex.rep_range_max, reps) for reps in ex.reps]
    off_range = [d for d in deviations if d != 0]
    if off_range:
        worst = max(off_range, key=abs)
        noun = "set" if len(off_range) == 1 else "sets"
        parts.append(
            f"{len(off_range)} {noun} outside {ex.rep_range_min}-{ex.rep_range_max} reps "
            f"(worst {_signed(worst)})"
        )

    if not parts:
        return None
    return f"{ex.name} " + ", ".join(parts)


def _describe_checklist(item: MetricItem) -> str:
    text = f"{_num(item.real)} of {_num(item.planned)} supplements taken"
    if item.missing:
        text += f" (missed {', '.join(item.missing)})"
    return text


def _failing_items(score: DomainScore) -> List[MetricItem]:
    failing = [i for i in score.items if i.result.tier != AccuracyTier.ON_TARGET]
    return sorted(failing, key=lambda i: i.result.accuracy)


def _deviation_details(day: DayAdherence, score: DomainScore) -> List[str]:
    if score.domain == Domain.TRAINING:
        details = []
        for ex in sorted(day.exercises, key=lambda e: e.accuracy):
            text = _describe_exercise(ex)
            if text:
                details.append(text)
        return details

    if score.domain == Domain.SUPPLEMENTS:
        return [_describe_checklist(item) for item in score.items]

    details = []
    for item in _failing_items(score):
        if score.domain == Domain.SLEEP and item.label == "bedtime":
            details.append(_describe_bedtime(item))
        elif score.domain == Domain.SLEEP and item.label == "hours":
            details.append(_describe_hours(item))
        else:
            details.append(_describe_quantity(item))
    return details


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def narrate_domain(day: DayAdherence, domain: Domain) -> DiagnosticLine:
    name = DOMAIN_NAMES[domain]
    score = day.domain(domain)
    if score is None:
        return DiagnosticLine("domain.no_data", DOMAIN_NO_DATA.format(domain=name), domain)

    if score.accuracy < DEVIATION_THRESHOLDS[domain]:
        details = _deviation_details(day, score)
        if details:
            text = DOMAIN_DEVIATION.format(
                domain=name, accuracy=score.accuracy, details="; ".join(details)
            )
        else:
            text = DOMAIN_DEVIATION_BARE.format(domain=name, accuracy=score.accuracy)
        return DiagnosticLine("domain.deviation", text, domain)

    if score.accuracy >= STRENGTH_THRESHOLD:
        return DiagnosticLine(
            "domain.strength", DOMAIN_STRENGTH.format(domain=name, accuracy=score.accuracy), domain
        )
    return DiagnosticLine(
        "domain.on_track", DOMAIN_ON_TRACK.format(domain=name, accuracy=score.accuracy), domain
    )


def narrate_day(day: DayAdherence, date_format: str = DEFAULT_DATE_FORMAT) -> Diagnostic:
    """Opening verdict, one line per domain, closing recommendation."""
    when = day.date.strftime(date_format)
    builder = _LineBuilder()

    if not day.has_data:
        builder.add("empty", DAY_NO_DATA.format(date=when))
        for domain in DOMAIN_ORDER:
            builder.add("domain.no_data", DOMAIN_NO_DATA.format(domain=DOMAIN_NAMES[domain]), domain)
        return Diagnostic(scope="day", tier=None, accuracy=0, lines=builder.build())

    tier = verdict_tier(day.global_accuracy)
    builder.add("opening", DAY_OPENING[tier].format(accuracy=day.global_accuracy, date=when))
    for domain in DOMAIN_ORDER:
        line = narrate_domain(day, domain)
        builder.add(line.key, line.text, line.domain)
    builder.add("closing", DAY_CLOSING[tier])

    logger.debug(f"Narrated {day.date}: tier={tier.value}, accuracy={day.global_accuracy}")
    return Diagnostic(scope="day", tier=tier, accuracy=day.global_accuracy, lines=builder.build())


def _narrate_domain_average(domain: Domain, average: Optional[int]) -> DiagnosticLine:
    name = DOMAIN_NAMES[domain]
    if average is None:
        return DiagnosticLine("domain.no_data", DOMAIN_NO_DATA.format(domain=name), domain)
    if average < DEVIATION_THRESHOLDS[domain]:
        return DiagnosticLine(
            "domain.deviation", MICROCYCLE_DEVIATION[domain].format(accuracy=average), domain
        )
    if average >= STRENGTH_THRESHOLD:
        return DiagnosticLine(
            "domain.strength", MICROCYCLE_STRENGTH[domain].format(accuracy=average), domain
        )
    return DiagnosticLine(
        "domain.on_track", MICROCYCLE_ON_TRACK.format(domain=name, accuracy=average), domain
    )


def narrate_microcycle(
    microcycle: MicrocycleAdherence,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> Diagnostic:
    """Window verdict, domain averages, best/worst day and a closing recommendation."""
    builder = _LineBuilder()
    days_with_data = microcycle.days_with_data

    if microcycle.is_sample:
        builder.add("sample", MICROCYCLE_SAMPLE)

    if not days_with_data or microcycle.best_day is None or microcycle.worst_day is None:
        builder.add("empty", MICROCYCLE_EMPTY)
        return Diagnostic(scope="microcycle", tier=None, accuracy=0, lines=builder.build())

    tier = verdict_tier(microcycle.average_accuracy)
    builder.add("opening", MICROCYCLE_OPENING[tier].format(
        days=len(days_with_data), accuracy=microcycle.average_accuracy,
    ))

    for domain in DOMAIN_ORDER:
        line = _narrate_domain_average(domain, microcycle.domain_averages.get(domain))
        builder.add(line.key, line.text, line.domain)

    best, worst = microcycle.best_day, microcycle.worst_day
    builder.add("best_day", MICROCYCLE_BEST_DAY.format(
        date=best.date.strftime(date_format), accuracy=best.global_accuracy,
    ))
    if worst.global_accuracy != best.global_accuracy:
        builder.add("worst_day", MICROCYCLE_WORST_DAY.format(
            date=worst.date.strftime(date_format), accuracy=worst.global_accuracy,
        ))

    builder.add("closing", MICROCYCLE_CLOSING[tier])
    return Diagnostic(
        scope="microcycle",
        tier=tier,
        accuracy=microcycle.average_accuracy,
        lines=builder.build(),
    )
