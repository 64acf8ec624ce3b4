"""Intégrations optionnelles avec des frameworks tiers."""
