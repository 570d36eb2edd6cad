"""Upstream chain data providers."""
