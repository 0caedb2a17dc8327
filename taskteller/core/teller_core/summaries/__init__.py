"""Daily summaries of open tasks."""

from .daily import DailyDigest, DailySummary, DailySummaryGenerator, basic_summary

__all__ = [
    "DailyDigest",
    "DailySummary",
    "DailySummaryGenerator",
    "basic_summary",
]
