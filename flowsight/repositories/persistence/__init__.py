from .gateway import AbstractPersistenceGateway
from .in_memory_gateway import InMemoryPersistenceGateway
from .neo4j_gateway import Neo4jPersistenceGateway

__all__ = ["AbstractPersistenceGateway", "InMemoryPersistenceGateway", "Neo4jPersistenceGateway"]
