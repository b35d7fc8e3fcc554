"""Repositories layer - database access for the services."""

from pbnj.repositories.pbn import PBNRepository

__all__ = ["PBNRepository"]
