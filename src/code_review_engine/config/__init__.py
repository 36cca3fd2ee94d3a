"""Configuration defaults for the code review engine."""
