"""Domain layer: entities, errors and repository contracts."""
