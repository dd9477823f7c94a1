"""Adapters: concrete implementations of the outbound ports."""
