"""Configuration records and environment settings."""
