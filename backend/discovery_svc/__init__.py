"""Discovery service: presence, broadcasts and relevance ranking."""
