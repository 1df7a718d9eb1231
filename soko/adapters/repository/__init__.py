"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccessTokenRepository, InMemoryAccountRepository
from .postgres import PostgresAccessTokenRepository, PostgresAccountRepository, run_migrations

__all__ = [
    "InMemoryAccessTokenRepository",
    "InMemoryAccountRepository",
    "PostgresAccessTokenRepository",
    "PostgresAccountRepository",
    "run_migrations",
]
