"""PassportFlow backend: passport application workflow and document handling."""

__version__ = "0.1.0"
