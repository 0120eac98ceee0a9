"""Application layer: settings, core services and document triggers."""
