"""Pydantic models for records, snapshots and narratives."""
