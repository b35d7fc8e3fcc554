"""PBNJ article generation and PBN publishing service."""

__version__ = "2.0.0"
