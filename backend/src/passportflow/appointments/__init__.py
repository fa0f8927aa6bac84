"""Biometrics appointment booking use cases."""
