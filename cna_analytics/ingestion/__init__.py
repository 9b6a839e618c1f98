"""Boundary normalization of imported spreadsheet rows."""
