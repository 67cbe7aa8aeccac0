"""Yield aggregation and recommendations for Aptos wallets."""
