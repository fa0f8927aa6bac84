from .service import ApplicationStatistics, DailyCount, LabeledCount, QueryService, relabel_counts

__all__ = ["ApplicationStatistics", "DailyCount", "LabeledCount", "QueryService", "relabel_counts"]
