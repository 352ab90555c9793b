"""Readers and writers for coverage tool output."""
