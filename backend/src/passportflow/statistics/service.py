"""Query/aggregation layer over the application collection.

Every figure is computed from the store on each call; nothing is cached.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Mapping, Optional, Tuple

from ..domain.applications.ports import ApplicationRepositoryPort
from .labels import DISTRICT_LABELS, TRAVEL_DOCUMENT_LABELS, label_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyCount:
    date: date
    count: int


@dataclass(frozen=True)
class LabeledCount:
    label: str
    count: int


@dataclass
class ApplicationStatistics:
    total_count: int
    count_with_appointment: int
    count_with_renewal_indicator: int
    daily_distribution: List[DailyCount] = field(default_factory=list)
    travel_document_distribution: List[LabeledCount] = field(default_factory=list)
    district_distribution: List[LabeledCount] = field(default_factory=list)
    status_distribution: List[LabeledCount] = field(default_factory=list)


def relabel_counts(
    rows: Iterable[Tuple[Optional[str], int]],
    labels: Optional[Mapping[str, str]] = None,
) -> List[LabeledCount]:
    """Map codes to labels, merge counts sharing a label, sort by count desc then label."""
    merged = Counter()
    for code, count in rows:
        merged[label_for(code, labels or {})] += count
    ordered = sorted(merged.items(), key=lambda item: (-item[1], item[0]))
    return [LabeledCount(label=label, count=count) for label, count in ordered]


class QueryService:
    """Read-only statistics over all applications."""

    def __init__(self, applications: ApplicationRepositoryPort):
        self.applications = applications

    def total_count(self) -> int:
        return self.applications.count_all()

    def count_with_appointment(self) -> int:
        return self.applications.count_with_appointment()

    def count_with_renewal_indicator(self) -> int:
        return self.applications.count_with_renewal_indicator()

    def daily_distribution(self) -> List[DailyCount]:
        """One entry per creation day with at least one application, oldest first."""
        rows = self.applications.count_by_created_day()
        return [
            DailyCount(date=day, count=count)
            for day, count in sorted(rows, key=lambda row: row[0])
            if count > 0
        ]

    def travel_document_distribution(self) -> List[LabeledCount]:
        return relabel_counts(self.applications.count_by_travel_document_type(), TRAVEL_DOCUMENT_LABELS)

    def district_distribution(self) -> List[LabeledCount]:
        return relabel_counts(self.applications.count_by_district(), DISTRICT_LABELS)

    def status_distribution(self) -> List[LabeledCount]:
        return relabel_counts(self.applications.count_by_status())

    def summary(self) -> ApplicationStatistics:
        statistics = ApplicationStatistics(
            total_count=self.total_count(),
            count_with_appointment=self.count_with_appointment(),
            count_with_renewal_indicator=self.count_with_renewal_indicator(),
            daily_distribution=self.daily_distribution(),
            travel_document_distribution=self.travel_document_distribution(),
            district_distribution=self.district_distribution(),
            status_distribution=self.status_distribution(),
        )
        logger.debug(f"Computed application statistics: total={statistics.total_count}")
        return statistics
