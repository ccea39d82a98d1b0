"""Feature pipeline and verification engine."""
