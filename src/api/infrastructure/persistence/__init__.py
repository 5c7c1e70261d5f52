"""Persistence gateways behind tenant-scoped repositories."""

from infrastructure.persistence.memory_gateway import InMemoryPersistenceGateway
from infrastructure.persistence.sqlalchemy_gateway import SqlAlchemyPersistenceGateway

__all__ = [
    "InMemoryPersistenceGateway",
    "SqlAlchemyPersistenceGateway",
]
