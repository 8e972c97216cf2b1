"""Observability: structured logging for runs and providers."""
