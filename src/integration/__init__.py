"""Integration layer: document store implementations."""
