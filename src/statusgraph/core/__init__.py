"""Configuration and shared error types."""
