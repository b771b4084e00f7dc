"""Report serialization and persistence."""

from .report_outputs import records_to_frame, write_report, write_run_summary

__all__ = ["records_to_frame", "write_report", "write_run_summary"]
