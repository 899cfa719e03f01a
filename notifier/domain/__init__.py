"""Domain layer: entities, value objects and typed errors."""
