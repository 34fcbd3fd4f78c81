"""Persistence layer: engine/session setup, ORM model, filters and repository."""
