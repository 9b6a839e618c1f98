"""Reconciliation and aggregation engine.

Merges the establishment register with CNA survey submissions, classifies
capability gaps, scores pillars, and places officers on the nine-box grid.
Pure functions over immutable records.

Deterministic -- no LLM calls.
"""
