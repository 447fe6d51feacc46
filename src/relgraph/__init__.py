"""RelGraph - compact, cycle-free views of what references what."""

__version__ = "0.1.0"
