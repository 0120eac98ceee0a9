"""API layer: HTTP controllers, dependencies and error shaping."""
