"""VideoGen Studio lip-sync backend."""
