"""Core configuration and primitives for the engagement engine."""
