"""Application layer: use cases and helpers."""
