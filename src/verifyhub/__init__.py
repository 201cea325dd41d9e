"""verifyhub: verification-request marketplace core."""

__version__ = "0.1.0"
