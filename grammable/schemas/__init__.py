"""Pydantic schemas (API contracts), kept apart from the ORM models."""
