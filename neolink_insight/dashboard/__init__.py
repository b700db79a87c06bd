"""Dashboard module for NeoLink Insight.

FastAPI backend answering chat questions and serving analytics over the
configured patient export.
"""

__version__ = "1.0.0"
