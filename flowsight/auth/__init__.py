from .authorization_validator import (
    AbstractAuthorizationValidator,
    ApiKeyAuthorizationValidator,
    generate_api_key,
    hash_api_key,
)

__all__ = ["AbstractAuthorizationValidator", "ApiKeyAuthorizationValidator", "generate_api_key", "hash_api_key"]
