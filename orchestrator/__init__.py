"""Orchestrator module for running Project Lens queries."""

from .query_pipeline import OutputView, QueryPipeline, run_query

__all__ = [
    "OutputView",
    "QueryPipeline",
    "run_query",
]
