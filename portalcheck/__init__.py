"""End-to-end browser checks with session-aware login."""
