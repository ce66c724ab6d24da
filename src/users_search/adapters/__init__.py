"""Adapters – infrastructure bindings for the listing ports."""
