"""Ledger services operating on a SQLAlchemy session."""
