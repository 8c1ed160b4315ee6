"""Understanding services."""
