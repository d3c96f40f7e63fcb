"""Available-user discovery orchestration."""
