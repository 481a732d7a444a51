"""Shared helpers: seeded randomness, logging, configuration."""
