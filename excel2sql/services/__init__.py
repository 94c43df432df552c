"""Pipeline services: type inference, orchestration, progress, summary."""
