"""Time log entries and summaries."""
