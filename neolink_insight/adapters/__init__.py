"""Adapters layer for NeoLink Insight.

Record loaders and intent analyzers implementing the ports defined in the
domain layer.
"""
