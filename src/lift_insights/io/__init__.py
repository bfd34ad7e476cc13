"""Persistence and import/export of workout records."""
