"""Shared SQLModel tables for the protocol services."""
