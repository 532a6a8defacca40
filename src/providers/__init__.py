"""Analysis providers: registry, health monitoring and failover."""
