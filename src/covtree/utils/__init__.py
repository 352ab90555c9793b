"""Helpers shared by the adapters and the report session."""
