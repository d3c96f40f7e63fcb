"""Semantic search collaborator and its degraded fallback."""
