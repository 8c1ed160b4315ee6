"""Understanding CLI commands."""
