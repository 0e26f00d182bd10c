"""Configuration data for the protocol engine.

Contains treatments.yaml (treatment catalog, styles and aliases) and
generic_protocols.yaml (specialty protocol templates and referral rules).
"""
