"""Input records."""
