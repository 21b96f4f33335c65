"""Conflict events API: authenticated CRUD and aggregation over conflict event data."""
