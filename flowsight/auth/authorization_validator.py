"""Validation of the credential that authorizes a bootstrap run."""

import hashlib
import logging
import secrets
from typing import List, Optional, Tuple

from flowsight.exceptions import AuthorizationError
from flowsight.repositories.persistence.dtos import ApiKeyDto
from flowsight.repositories.persistence.gateway import AbstractPersistenceGateway

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "prc_"
WORKFLOWS_START_SCOPE = "workflows:start"


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def generate_api_key() -> Tuple[str, str]:
    """Return a new (plaintext key, key hash) pair."""
    api_key = API_KEY_PREFIX + secrets.token_urlsafe(32)
    return api_key, hash_api_key(api_key)


class AbstractAuthorizationValidator:
    def validate(self, credential: str, project_id: str) -> None:
        """
        Verify that a credential may start workflows for a project.

        Raises:
            AuthorizationError: If the credential is not acceptable
        """
        raise NotImplementedError


class ApiKeyAuthorizationValidator(AbstractAuthorizationValidator):
    """Checks project API keys registered in the persistence gateway."""

    def __init__(self, gateway: AbstractPersistenceGateway, required_scope: str = WORKFLOWS_START_SCOPE):
        self.gateway = gateway
        self.required_scope = required_scope

    def validate(self, credential: str, project_id: str) -> None:
        if not credential or not credential.startswith(API_KEY_PREFIX):
            raise AuthorizationError("Invalid API key format")

        record = self.gateway.find_api_key(hash_api_key(credential))
        if record is None or record.revoked:
            raise AuthorizationError("Invalid or revoked API key")
        if record.project_id != project_id:
            raise AuthorizationError("API key does not belong to this project")
        if self.required_scope not in record.scopes:
            raise AuthorizationError(f"API key does not have {self.required_scope} scope")
        logger.info(f"Validated API key '{record.name}' for project {project_id}")

    def register_key(
        self, project_id: str, name: str = "default", scopes: Optional[List[str]] = None
    ) -> Tuple[str, ApiKeyDto]:
        """Create and register a key for a project, returning the plaintext key once."""
        api_key, key_hash = generate_api_key()
        record = ApiKeyDto(
            key_hash=key_hash,
            key_prefix=api_key[:12],
            project_id=project_id,
            name=name,
            scopes=scopes if scopes is not None else [self.required_scope],
        )
        return api_key, self.gateway.register_api_key(record)
