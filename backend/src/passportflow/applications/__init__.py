"""Application use cases: submission, status transitions, verification."""
