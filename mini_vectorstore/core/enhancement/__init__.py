"""Embedding caches and request batching."""
