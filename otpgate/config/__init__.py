"""Configuration - settings and logging."""
