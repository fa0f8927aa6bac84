"""Passport renewal request use cases."""
