"""Packaged WHO growth reference tables (CSV)."""
