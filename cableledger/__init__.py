"""Multi-tenant billing ledger for cable and broadband operators."""
