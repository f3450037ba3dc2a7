import logging
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date

from contribution_graph.models import ContributionRecord
from contribution_graph.models import UnifiedSeries


logger = logging.getLogger(__name__)

OVERFLOW_COLOR = "red"


def build_classification_table(
    series: UnifiedSeries,
) -> dict[int, tuple[str, int | str | None]]:
    """Map every observed count to the color and intensity it was given."""

    return {
        record.count: (record.color, record.intensity)
        for record in series.contributions
    }


def merge_contributions(
    secondary_counts: Mapping[date, int], primary: UnifiedSeries
) -> UnifiedSeries:
    """Add secondary daily counts onto the primary series.

    Only days known to the primary series are merged. A merged count that the
    primary never classified is marked with `OVERFLOW_COLOR` and no intensity.
    Each year's total grows by one per merged day, not by the added count.
    """

    classification = build_classification_table(primary)
    touched_per_year: dict[int, int] = {}

    contributions: list[ContributionRecord] = []
    for record in primary.contributions:
        extra = secondary_counts.get(record.date)
        if extra is None:
            contributions.append(record)
            continue

        year = record.date.year
        touched_per_year[year] = touched_per_year.get(year, 0) + 1

        count = record.count + extra
        color, intensity = classification.get(count, (OVERFLOW_COLOR, None))
        contributions.append(
            record.model_copy(
                update={"count": count, "color": color, "intensity": intensity}
            )
        )

    years = [
        summary.model_copy(
            update={"total": summary.total + touched_per_year.get(summary.year, 0)}
        )
        for summary in primary.years
    ]

    logger.debug("Merged days per year: %s", touched_per_year)

    return UnifiedSeries(years=years, contributions=contributions)


def combine_sources(
    primary: UnifiedSeries, secondaries: Iterable[UnifiedSeries]
) -> UnifiedSeries:
    """Fold every secondary series into the primary one, in order."""

    combined = primary
    for secondary in secondaries:
        combined = merge_contributions(secondary.counts_by_date(), combined)
    return combined
