"""Datastore — async SQLAlchemy engine and session management."""

from cardano_scanner.datastore.client import Datastore

__all__ = ["Datastore"]
