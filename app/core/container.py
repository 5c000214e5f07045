from dataclasses import dataclass

from ..application.services.account_service import AccountLifecycleService
from ..application.services.auth_service import AuthService
from ..domain.policies.authorization import AuthorizationPolicy
from ..domain.ports.persistence import PersistenceGateway
from ..services.credential_service import CredentialManager
from ..services.notification_dispatcher import NotificationDispatcher
from ..services.token_service import TokenLifecycleManager
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    credential_manager: CredentialManager
    token_manager: TokenLifecycleManager
    authorization_policy: AuthorizationPolicy
    notification_dispatcher: NotificationDispatcher
    account_service: AccountLifecycleService
    auth_service: AuthService
