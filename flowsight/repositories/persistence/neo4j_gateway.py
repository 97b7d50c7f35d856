import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from neo4j import Driver, GraphDatabase, exceptions, unit_of_work

from flowsight.exceptions import ChangeSetAlreadyAnalyzedError, PersistenceError

from .dtos import (
    ApiKeyDto,
    ChangedFileDto,
    ChangeSetDto,
    FlowCreateDto,
    FlowDto,
    FlowGraphData,
    PersonaCreateDto,
    PersonaDto,
    PersonaSource,
    ProjectDto,
    RiskLevel,
    StepCreateDto,
    StepDto,
)
from .gateway import AbstractPersistenceGateway

logger = logging.getLogger(__name__)

load_dotenv()

SCHEMA_QUERIES = [
    "CREATE CONSTRAINT project_name IF NOT EXISTS FOR (p:PROJECT) REQUIRE p.name IS UNIQUE",
    "CREATE CONSTRAINT persona_name IF NOT EXISTS FOR (p:PERSONA) REQUIRE (p.project_id, p.name_key) IS UNIQUE",
    "CREATE CONSTRAINT flow_name IF NOT EXISTS FOR (f:FLOW) REQUIRE (f.project_id, f.name) IS UNIQUE",
    "CREATE CONSTRAINT change_set_id IF NOT EXISTS FOR (c:CHANGE_SET) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT api_key_hash IF NOT EXISTS FOR (k:API_KEY) REQUIRE k.key_hash IS UNIQUE",
]

GET_OR_CREATE_PROJECT_QUERY = """
MERGE (p:PROJECT {name: $name})
ON CREATE SET p.id = $id, p.git_remote_url = $git_remote_url
RETURN p {.*} AS p
"""

GET_PROJECT_QUERY = "MATCH (p:PROJECT {id: $id}) RETURN p {.*} AS p"

GET_OR_CREATE_PERSONA_QUERY = """
MERGE (p:PERSONA {project_id: $project_id, name_key: $name_key})
ON CREATE SET p.id = $id,
              p.name = $name,
              p.description = $description,
              p.behaviors = $behaviors,
              p.source = $source
RETURN p {.*} AS p
"""

GET_PERSONAS_QUERY = """
MATCH (p:PERSONA {project_id: $project_id})
WHERE $source IS NULL OR p.source = $source
RETURN p {.*} AS p
ORDER BY p.name
"""

GET_OR_CREATE_FLOW_QUERY = """
MERGE (f:FLOW {project_id: $project_id, name: $name})
ON CREATE SET f.id = $id,
              f.description = $description,
              f.persona_id = $persona_id,
              f.priority = $priority,
              f.entry_point = $entry_point,
              f.graph_data = $graph_data,
              f.affected_by_changes = [],
              f.risk_score = 0.0,
              f.is_active = true
WITH f
OPTIONAL MATCH (persona:PERSONA {id: f.persona_id, project_id: f.project_id})
FOREACH (_ IN CASE WHEN persona IS NULL THEN [] ELSE [1] END | MERGE (persona)-[:PERFORMS]->(f))
RETURN f {.*} AS f
"""

GET_FLOW_QUERY = "MATCH (f:FLOW {id: $id}) RETURN f {.*} AS f"

GET_FLOWS_QUERY = """
MATCH (f:FLOW {project_id: $project_id})
WHERE NOT $active_only OR f.is_active
RETURN f {.*} AS f
ORDER BY f.name
"""

GET_AFFECTED_FLOWS_QUERY = """
MATCH (f:FLOW {project_id: $project_id})
WHERE size(coalesce(f.affected_by_changes, [])) > 0
RETURN f {.*} AS f
ORDER BY f.risk_score DESC
"""

DELETE_STEPS_QUERY = """
MATCH (f:FLOW {id: $flow_id})
OPTIONAL MATCH (f)-[:HAS_STEP]->(old:STEP)
DETACH DELETE old
RETURN count(DISTINCT f) AS flows
"""

CREATE_STEPS_QUERY = """
MATCH (f:FLOW {id: $flow_id})
UNWIND $steps AS step
CREATE (f)-[:HAS_STEP]->(s:STEP)
SET s = step
RETURN s {.*} AS s
ORDER BY s.sequence_order
"""

GET_STEPS_QUERY = """
MATCH (:FLOW {id: $flow_id})-[:HAS_STEP]->(s:STEP)
RETURN s {.*} AS s
ORDER BY s.sequence_order
"""

CREATE_CHANGE_SET_QUERY = """
MERGE (c:CHANGE_SET {id: $id})
ON CREATE SET
    c.project_id = $project_id,
    c.base_sha = $base_sha,
    c.head_sha = $head_sha,
    c.files = $files,
    c.affected_flow_ids = [],
    c.created_at = $created_at
RETURN c {.*} AS c
"""

GET_CHANGE_SET_QUERY = "MATCH (c:CHANGE_SET {id: $id}) RETURN c {.*} AS c"

UPDATE_CHANGE_SET_ANALYSIS_QUERY = """
MATCH (c:CHANGE_SET {id: $id})
WITH c, c.analyzed_at IS NULL AS pending
FOREACH (_ IN CASE WHEN pending THEN [1] ELSE [] END |
    SET c.risk_level = $risk_level,
        c.risk_score = $risk_score,
        c.affected_flow_ids = $affected_flow_ids,
        c.analyzed_at = $analyzed_at
)
RETURN c {.*} AS c, pending
"""

# The increment reads and writes the property within one SET, under the node's write lock
MARK_FLOW_AFFECTED_QUERY = """
MATCH (f:FLOW {id: $flow_id})
SET f.risk_score = CASE
        WHEN coalesce(f.risk_score, 0.0) + $increment > 1.0 THEN 1.0
        ELSE coalesce(f.risk_score, 0.0) + $increment
    END,
    f.affected_by_changes = coalesce(f.affected_by_changes, []) + $change_set_id
RETURN f {.*} AS f
"""

CLEAR_AFFECTED_FLOWS_QUERY = """
UNWIND $flow_ids AS flow_id
MATCH (f:FLOW {id: flow_id})
SET f.risk_score = 0.0, f.affected_by_changes = []
RETURN count(f) AS cleared
"""

REGISTER_API_KEY_QUERY = """
MERGE (k:API_KEY {key_hash: $key_hash})
SET k.key_prefix = $key_prefix,
    k.project_id = $project_id,
    k.name = $name,
    k.scopes = $scopes,
    k.revoked = $revoked
RETURN k {.*} AS k
"""

FIND_API_KEY_QUERY = "MATCH (k:API_KEY {key_hash: $key_hash}) RETURN k {.*} AS k"


def _new_id() -> str:
    return str(uuid.uuid4())


class Neo4jPersistenceGateway(AbstractPersistenceGateway):
    driver: Driver

    def __init__(
        self,
        uri: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        max_connections: int = 50,
        query_timeout: float = 30.0,
    ):
        uri = uri or os.getenv("NEO4J_URI")
        user = user or os.getenv("NEO4J_USERNAME")
        password = password or os.getenv("NEO4J_PASSWORD")
        self.database = database
        self.query_timeout = query_timeout

        retries = 3
        for attempt in range(retries):
            try:
                self.driver = GraphDatabase.driver(uri, auth=(user, password), max_connection_pool_size=max_connections)
                self.driver.verify_connectivity()
                break
            except exceptions.ServiceUnavailable as e:
                if attempt < retries - 1:
                    time.sleep(2**attempt)
                else:
                    raise PersistenceError(f"Neo4j is unavailable at {uri}") from e

    def close(self) -> None:
        self.driver.close()

    def ensure_schema(self) -> None:
        """Create the uniqueness constraints backing create-or-get."""
        with self.driver.session(database=self.database) as session:
            for query in SCHEMA_QUERIES:
                session.run(query)

    @staticmethod
    def _run_query_txn(tx, query: str, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        result = tx.run(query, parameters)
        return [record.data() for record in result]

    def _execute(self, access: str, work: Callable[..., Any], *args: Any) -> Any:
        timed_work = unit_of_work(timeout=self.query_timeout)(work)
        try:
            with self.driver.session(database=self.database) as session:
                if access == "write":
                    return session.execute_write(timed_work, *args)
                return session.execute_read(timed_work, *args)
        except (exceptions.Neo4jError, exceptions.DriverError) as e:
            logger.exception(f"Error executing Neo4j {access} transaction: {e}")
            raise PersistenceError(str(e)) from e

    def _write(self, query: str, **parameters: Any) -> List[Dict[str, Any]]:
        return self._execute("write", self._run_query_txn, query, parameters)

    def _read(self, query: str, **parameters: Any) -> List[Dict[str, Any]]:
        return self._execute("read", self._run_query_txn, query, parameters)

    def get_or_create_project(self, name: str, git_remote_url: Optional[str] = None) -> ProjectDto:
        records = self._write(GET_OR_CREATE_PROJECT_QUERY, name=name, id=_new_id(), git_remote_url=git_remote_url)
        return ProjectDto(**records[0]["p"])

    def get_project(self, project_id: str) -> Optional[ProjectDto]:
        records = self._read(GET_PROJECT_QUERY, id=project_id)
        return ProjectDto(**records[0]["p"]) if records else None

    def get_or_create_persona(self, project_id: str, persona: PersonaCreateDto) -> PersonaDto:
        records = self._write(
            GET_OR_CREATE_PERSONA_QUERY,
            project_id=project_id,
            name_key=persona.name.strip().lower(),
            id=_new_id(),
            name=persona.name,
            description=persona.description,
            behaviors=list(persona.behaviors),
            source=persona.source.value,
        )
        return self._to_persona(records[0]["p"])

    def get_personas(self, project_id: str, source: Optional[PersonaSource] = None) -> List[PersonaDto]:
        records = self._read(GET_PERSONAS_QUERY, project_id=project_id, source=source.value if source else None)
        return [self._to_persona(record["p"]) for record in records]

    def get_or_create_flow(self, project_id: str, flow: FlowCreateDto) -> FlowDto:
        records = self._write(
            GET_OR_CREATE_FLOW_QUERY,
            project_id=project_id,
            name=flow.name,
            id=_new_id(),
            description=flow.description,
            persona_id=flow.persona_id,
            priority=flow.priority.value,
            entry_point=flow.entry_point,
            graph_data=flow.graph_data.model_dump_json(),
        )
        return self._to_flow(records[0]["f"])

    def get_flow(self, flow_id: str) -> Optional[FlowDto]:
        records = self._read(GET_FLOW_QUERY, id=flow_id)
        return self._to_flow(records[0]["f"]) if records else None

    def get_flows(self, project_id: str, active_only: bool = True) -> List[FlowDto]:
        records = self._read(GET_FLOWS_QUERY, project_id=project_id, active_only=active_only)
        return [self._to_flow(record["f"]) for record in records]

    def get_affected_flows(self, project_id: str) -> List[FlowDto]:
        records = self._read(GET_AFFECTED_FLOWS_QUERY, project_id=project_id)
        return [self._to_flow(record["f"]) for record in records]

    def create_steps(self, flow_id: str, steps: List[StepCreateDto]) -> List[StepDto]:
        step_rows = [
            {"id": _new_id(), "flow_id": flow_id, "sequence_order": index, **step.model_dump()}
            for index, step in enumerate(steps, start=1)
        ]
        flow_found, records = self._execute("write", self._replace_steps_txn, flow_id, step_rows)
        if not flow_found:
            raise PersistenceError(f"Flow {flow_id} does not exist")
        return [StepDto(**record["s"]) for record in records]

    @staticmethod
    def _replace_steps_txn(tx, flow_id: str, step_rows: List[Dict[str, Any]]):
        deleted = tx.run(DELETE_STEPS_QUERY, flow_id=flow_id).single()
        if deleted is None or deleted["flows"] == 0:
            return False, []
        if not step_rows:
            return True, []
        result = tx.run(CREATE_STEPS_QUERY, flow_id=flow_id, steps=step_rows)
        return True, [record.data() for record in result]

    def get_steps(self, flow_id: str) -> List[StepDto]:
        records = self._read(GET_STEPS_QUERY, flow_id=flow_id)
        return [StepDto(**record["s"]) for record in records]

    def create_change_set(
        self,
        project_id: str,
        base_sha: str,
        head_sha: str,
        files: List[ChangedFileDto],
        change_set_id: Optional[str] = None,
    ) -> ChangeSetDto:
        records = self._write(
            CREATE_CHANGE_SET_QUERY,
            id=change_set_id or _new_id(),
            project_id=project_id,
            base_sha=base_sha,
            head_sha=head_sha,
            files=json.dumps([f.model_dump(mode="json") for f in files]),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        return self._to_change_set(records[0]["c"])

    def get_change_set(self, change_set_id: str) -> Optional[ChangeSetDto]:
        records = self._read(GET_CHANGE_SET_QUERY, id=change_set_id)
        return self._to_change_set(records[0]["c"]) if records else None

    def update_change_set_analysis(
        self, change_set_id: str, risk_level: RiskLevel, risk_score: float, affected_flow_ids: List[str]
    ) -> ChangeSetDto:
        records = self._write(
            UPDATE_CHANGE_SET_ANALYSIS_QUERY,
            id=change_set_id,
            risk_level=risk_level.value,
            risk_score=risk_score,
            affected_flow_ids=list(affected_flow_ids),
            analyzed_at=datetime.now(timezone.utc).isoformat(),
        )
        if not records:
            raise PersistenceError(f"Change set {change_set_id} does not exist")
        if not records[0]["pending"]:
            raise ChangeSetAlreadyAnalyzedError(change_set_id)
        return self._to_change_set(records[0]["c"])

    def mark_flow_affected(self, flow_id: str, change_set_id: str, risk_increment: float) -> FlowDto:
        records = self._write(
            MARK_FLOW_AFFECTED_QUERY,
            flow_id=flow_id,
            change_set_id=change_set_id,
            increment=max(0.0, risk_increment),
        )
        if not records:
            raise PersistenceError(f"Flow {flow_id} does not exist")
        return self._to_flow(records[0]["f"])

    def clear_affected_flows(self, flow_ids: List[str]) -> int:
        if not flow_ids:
            return 0
        records = self._write(CLEAR_AFFECTED_FLOWS_QUERY, flow_ids=list(flow_ids))
        return records[0]["cleared"] if records else 0

    def register_api_key(self, api_key: ApiKeyDto) -> ApiKeyDto:
        records = self._write(REGISTER_API_KEY_QUERY, **api_key.model_dump())
        return ApiKeyDto(**records[0]["k"])

    def find_api_key(self, key_hash: str) -> Optional[ApiKeyDto]:
        records = self._read(FIND_API_KEY_QUERY, key_hash=key_hash)
        return ApiKeyDto(**records[0]["k"]) if records else None

    @staticmethod
    def _to_persona(properties: Dict[str, Any]) -> PersonaDto:
        return PersonaDto(
            id=properties["id"],
            project_id=properties["project_id"],
            name=properties["name"],
            description=properties.get("description") or "",
            behaviors=properties.get("behaviors") or [],
            source=properties.get("source") or PersonaSource.AUTO_GENERATED,
        )

    @staticmethod
    def _to_flow(properties: Dict[str, Any]) -> FlowDto:
        graph_data = properties.get("graph_data")
        return FlowDto(
            id=properties["id"],
            project_id=properties["project_id"],
            persona_id=properties.get("persona_id"),
            name=properties["name"],
            description=properties.get("description") or "",
            priority=properties.get("priority") or "medium",
            entry_point=properties.get("entry_point"),
            graph_data=FlowGraphData.model_validate_json(graph_data) if graph_data else FlowGraphData(),
            affected_by_changes=properties.get("affected_by_changes") or [],
            risk_score=properties.get("risk_score") or 0.0,
            is_active=properties.get("is_active", True),
        )

    @staticmethod
    def _to_change_set(properties: Dict[str, Any]) -> ChangeSetDto:
        files = json.loads(properties.get("files") or "[]")
        return ChangeSetDto(
            id=properties["id"],
            project_id=properties["project_id"],
            base_sha=properties["base_sha"],
            head_sha=properties["head_sha"],
            files=[ChangedFileDto(**f) for f in files],
            risk_level=properties.get("risk_level"),
            risk_score=properties.get("risk_score"),
            affected_flow_ids=properties.get("affected_flow_ids") or [],
            created_at=properties["created_at"],
            analyzed_at=properties.get("analyzed_at"),
        )
