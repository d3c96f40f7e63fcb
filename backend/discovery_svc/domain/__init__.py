"""Discovery domain packages."""
