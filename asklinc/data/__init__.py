"""Tier-aware external data: registry, providers, shared cache and aggregator."""
