"""Schemas for protocol derivation, treatment catalog, and reports."""
