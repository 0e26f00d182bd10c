"""Deterministic protocol tools."""
