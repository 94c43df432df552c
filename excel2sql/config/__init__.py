"""Configuration: connection descriptors and import job files."""
