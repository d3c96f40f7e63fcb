"""Relevance ranking: scoring, weights and batch engine."""
