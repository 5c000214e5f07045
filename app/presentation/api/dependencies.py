from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.auth_service import AuthService
from ...core.dependencies import get_auth_service, get_authorization_policy
from ...domain.errors import AuthenticationError, AuthorizationError
from ...domain.policies.authorization import Action, AuthorizationPolicy, Claims

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Claims:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing bearer token")
    return await auth_service.resolve_claims(credentials.credentials)


def require_action(action: Action) -> Callable[..., Claims]:
    """Dependency factory for actions that do not depend on a target account."""

    def dependency(
        claims: Claims = Depends(get_current_claims),
        policy: AuthorizationPolicy = Depends(get_authorization_policy),
    ) -> Claims:
        if not policy.can_act(claims, action):
            raise AuthorizationError("Access denied. Administrator privileges required.")
        return claims

    return dependency
