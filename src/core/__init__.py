"""Domain model and error taxonomy."""
