"""Domain layer: paths, records, change events, errors and the store interface."""
