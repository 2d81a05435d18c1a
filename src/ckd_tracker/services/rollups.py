"""Exact recomputation of period summaries from daily and weight data."""

from collections.abc import Iterable, Mapping

from ckd_tracker.domain.summaries import DailySummary, SymptomKind

WEIGHT_TREND_THRESHOLD_KG = 0.1

_SUMMED_COUNTERS = (
    "medication_total_doses",
    "medication_scheduled_doses",
    "medication_missed_count",
    "fluid_total_volume",
    "fluid_session_count",
    "fluid_scheduled_sessions",
)


def rollup_period(
    days: Iterable[DailySummary], *, include_longest_streak: bool = False
) -> dict[str, object]:
    """Return absolute period field values recomputed from daily summaries.

    Unlike the incremental path, ``symptom_score_average`` is the mean of the
    daily averages over every day with entered scores.
    """
    daily = list(days)
    fields: dict[str, object] = {
        name: sum(getattr(summary, name) for summary in daily)
        for name in _SUMMED_COUNTERS
    }
    fields["fluid_total_volume"] = float(fields["fluid_total_volume"])
    fields["fluid_treatment_days"] = _count(daily, "fluid_treatment_done")
    fields["fluid_missed_days"] = _count(daily, "is_fluid_missed")
    fields["overall_treatment_days"] = _count(daily, "overall_treatment_done")
    fields["overall_missed_days"] = _count(daily, "is_missed")
    for kind in SymptomKind:
        fields[f"days_with_{kind.value}"] = sum(
            1 for summary in daily if summary.had_symptom(kind)
        )
    fields["days_with_any_symptoms"] = _count(daily, "has_symptoms")

    totals = [
        summary.symptom_score_total
        for summary in daily
        if summary.symptom_score_total is not None
    ]
    averages = [
        summary.symptom_score_average
        for summary in daily
        if summary.symptom_score_average is not None
    ]
    fields["symptom_score_total"] = sum(totals) if totals else None
    fields["symptom_score_max"] = max(totals) if totals else None
    fields["symptom_score_average"] = (
        sum(averages) / len(averages) if averages else None
    )
    if include_longest_streak:
        fields["overall_longest_streak"] = max(
            (summary.overall_streak for summary in daily), default=0
        )
    return fields


def weight_fields(entries: Mapping[str, float]) -> dict[str, object]:
    """Return the monthly weight-trend fields for a map of ISO day -> kg."""
    if not entries:
        return {
            "weight_entries": {},
            "weight_entries_count": 0,
            "weight_first": None,
            "weight_first_date": None,
            "weight_latest": None,
            "weight_latest_date": None,
            "weight_average": None,
            "weight_change": None,
            "weight_change_percent": None,
            "weight_trend": None,
        }
    ordered = sorted(entries.items())
    first_day, first = ordered[0]
    latest_day, latest = ordered[-1]
    change = latest - first
    return {
        "weight_entries": dict(ordered),
        "weight_entries_count": len(ordered),
        "weight_first": first,
        "weight_first_date": first_day,
        "weight_latest": latest,
        "weight_latest_date": latest_day,
        "weight_average": sum(kg for _, kg in ordered) / len(ordered),
        "weight_change": change,
        "weight_change_percent": change / first * 100,
        "weight_trend": weight_trend(change),
    }


def weight_trend(change: float) -> str:
    if change > WEIGHT_TREND_THRESHOLD_KG:
        return "increasing"
    if change < -WEIGHT_TREND_THRESHOLD_KG:
        return "decreasing"
    return "stable"


def _count(days: list[DailySummary], attribute: str) -> int:
    return sum(1 for summary in days if getattr(summary, attribute))
