from datetime import date

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ContributionRecord(FrozenModel):
    """Contribution count of a single day with its upstream classification."""

    date: date
    count: int = Field(ge=0)
    color: str = ""
    intensity: int | str | None = None


class DateRange(FrozenModel):
    start: date
    end: date


class YearSummary(FrozenModel):
    """Yearly total reported by a contribution source."""

    year: int
    total: int = Field(ge=0)
    range: DateRange


class UnifiedSeries(FrozenModel):
    """Per-day contributions and per-year totals of one or more sources."""

    years: list[YearSummary] = Field(default_factory=list)
    contributions: list[ContributionRecord] = Field(default_factory=list)

    @field_validator("contributions")
    @classmethod
    def order_by_date(
        cls, contributions: list[ContributionRecord]
    ) -> list[ContributionRecord]:
        """Keep days oldest first; sources may deliver them newest first."""

        ordered = sorted(contributions, key=lambda record: record.date)
        for previous, current in zip(ordered, ordered[1:]):
            if previous.date == current.date:
                raise ValueError(f"duplicate contribution date {current.date}")
        return ordered

    def counts_by_date(self) -> dict[date, int]:
        return {record.date: record.count for record in self.contributions}

    def summary_for(self, year: int) -> YearSummary | None:
        for summary in self.years:
            if summary.year == year:
                return summary
        return None


class Cell(FrozenModel):
    """Grid cell; `info` is None when no source reported the day."""

    date: date
    info: ContributionRecord | None = None


class MonthLabel(FrozenModel):
    x: int = Field(ge=0)
    label: str


class YearGraphData(FrozenModel):
    """Everything a renderer needs to draw the graph of one year."""

    year: int
    blocks: list[list[Cell]]
    month_labels: list[MonthLabel]
    total_count: int = Field(ge=0)


class GraphRequest(FrozenModel):
    full_year: bool = False
    primary_username: str | None = None
    secondary_username: str | None = None
    years: list[int] = Field(default_factory=list)
