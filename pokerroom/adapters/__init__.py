"""Adapters (implementations of ports)."""
