"""Search coordination: validation, lookup, ranking and aggregation."""
