"""Database layer: dialects, statement synthesis, batch loading, connections."""
