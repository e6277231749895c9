"""planproof: verify implementation plans against a project's real state."""

__version__ = "0.1.0"
