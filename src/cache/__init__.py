"""Query result cache backends."""
