"""Versioned JSON Schema contracts for data crossing the import boundary."""
