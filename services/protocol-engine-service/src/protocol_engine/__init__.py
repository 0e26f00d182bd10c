"""Protocol engine: treatment protocol derivation, templates and reporting.

Pure, synchronous lookups and builders over evaluation records, plus an
async dispatcher that routes protocol generation by treatment type.
"""
