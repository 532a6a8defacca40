"""Provider metrics and search analytics."""
