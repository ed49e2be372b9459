"""coachmem: conversational memory engine for a running coach."""

__version__ = "0.1.0"
