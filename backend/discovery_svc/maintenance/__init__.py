"""Background maintenance jobs and their scheduler."""
