"""Donation ledger: verified donations, marketplace listings and credit transactions."""

__version__ = "1.0.0"
