"""Click commands for condbuild."""
