"""Text-generation providers consumed by the runner."""
