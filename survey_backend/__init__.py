"""Survey definitions, transactional response recording and thank-you notifications."""

__version__ = "1.0.0"
