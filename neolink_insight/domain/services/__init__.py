"""Domain Services.

Pure functions over in-memory patient records: the filter engine, the
summary formatter and the canned analytics reports.
"""

from neolink_insight.domain.services.filter_engine import retrieve_relevant_data
from neolink_insight.domain.services.summary_formatter import build_summary

__all__ = ["retrieve_relevant_data", "build_summary"]
