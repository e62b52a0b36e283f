"""Core module for the shuttlebracket application."""

from .transactions import run_transaction
from .types import FirestoreDocument

__all__ = ["FirestoreDocument", "run_transaction"]
