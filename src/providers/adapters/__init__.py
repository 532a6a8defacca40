"""SDK-backed analysis provider adapters (imported lazily by the factory)."""
