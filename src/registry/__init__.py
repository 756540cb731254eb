"""Package metadata sources."""
