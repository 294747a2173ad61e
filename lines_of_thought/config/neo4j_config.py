"""Neo4j configuration and schema management for the thought graph."""

from neo4j import GraphDatabase, Driver
from neo4j.exceptions import DriverError, Neo4jError
from typing import Optional, Dict, Any, List
import logging
import threading
from .settings import settings

logger = logging.getLogger(__name__)

class Neo4jConfig:
    """Neo4j configuration and connection management."""

    def __init__(
        self,
        uri: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
    ):
        self.uri = uri or settings.NEO4J_URI
        self.user = user or settings.NEO4J_USER
        self.password = password or settings.NEO4J_PASSWORD
        self.database = database or settings.NEO4J_DATABASE
        self._driver: Optional[Driver] = None
        self._lock = threading.Lock()

    @property
    def driver(self) -> Driver:
        """Get Neo4j driver connection, creating it once."""
        if self._driver is None:
            with self._lock:
                if self._driver is None:
                    driver = GraphDatabase.driver(self.uri, auth=(self.user, self.password))
                    try:
                        driver.verify_connectivity()
                    except (Neo4jError, DriverError) as e:
                        logger.error(f"Neo4j connection failed: {e}")
                        driver.close()
                        raise
                    logger.info("Neo4j connection established")
                    self._driver = driver
        return self._driver

    def schema_statements(self) -> List[str]:
        """Constraint and index statements for the thought graph."""
        dimensions = settings.EMBEDDING_DIMENSIONS
        return [
            # Root listing is ordered newest-first
            "CREATE INDEX thought_root_created_index IF NOT EXISTS FOR (t:Thought) ON (t.isRoot, t.createdAt)",

            # Vector index for 384-dimensional embeddings
            "CREATE VECTOR INDEX thought_embedding_index IF NOT EXISTS FOR (t:Thought) ON (t.embedding) "
            f"OPTIONS {{indexConfig: {{`vector.dimensions`: {dimensions}, `vector.similarity_function`: 'cosine'}}}}",
        ]

    def create_schema(self) -> None:
        """Create the Neo4j schema for the thought graph."""
        with self.driver.session(database=self.database) as session:
            for query in self.schema_statements():
                try:
                    session.run(query).consume()
                    logger.info(f"Schema query executed: {query[:50]}...")
                except Neo4jError as e:
                    logger.warning(f"Schema query failed (may already exist): {e}")

    def verify_schema(self) -> Dict[str, Any]:
        """Verify the schema is correctly created."""
        with self.driver.session(database=self.database) as session:
            indexes = [record["name"] for record in session.run("SHOW INDEXES")]
            labels = [record["label"] for record in session.run("CALL db.labels()")]

        expected = {"thought_root_created_index", "thought_embedding_index"}
        return {
            "indexes": indexes,
            "labels": labels,
            "schema_ready": expected.issubset(indexes),
        }

    def close(self) -> None:
        """Close the Neo4j driver connection."""
        with self._lock:
            if self._driver:
                self._driver.close()
                self._driver = None

# Global Neo4j instance
neo4j_config = Neo4jConfig()

def get_neo4j_driver() -> Driver:
    """Get the global Neo4j driver."""
    return neo4j_config.driver

def initialize_neo4j_schema() -> Dict[str, Any]:
    """Initialize the Neo4j schema and return verification results."""
    neo4j_config.create_schema()
    return neo4j_config.verify_schema()
