"""
Booksales: reconcile heterogeneous sales reports into a ranked, catalog-enriched report.

The stages are importable on their own; ``run_pipeline`` wires them together.
"""

from .booksales_pipeline import PipelineRunResult, run_pipeline

__all__ = ["PipelineRunResult", "run_pipeline"]
