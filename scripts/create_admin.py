import asyncio
import getpass

from app.application.services.account_service import AccountLifecycleService
from app.core.config import Settings
from app.domain.contracts import CreateUserInput
from app.domain.errors import ValidationError
from app.domain.models import Role
from app.domain.policies.authorization import AuthorizationPolicy
from app.infrastructure.persistence.sqlite import SQLitePersistence
from app.services.credential_service import CredentialManager


async def main() -> None:
    settings = Settings()

    email = input("Administrator email: ").strip()
    username = input("Administrator username [admin]: ").strip() or "admin"
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        raise SystemExit("Passwords do not match.")

    persistence = SQLitePersistence(settings.database_path)
    credentials = CredentialManager(max_workers=1)
    accounts = AccountLifecycleService(persistence, credentials, AuthorizationPolicy())
    try:
        user = await accounts.register(
            CreateUserInput(email=email, username=username, password=password, role=Role.ADMIN),
            is_verified=True,
        )
    except ValidationError as exc:
        raise SystemExit(exc.message) from exc
    finally:
        credentials.close()
        persistence.close()

    print("Administrator created:", user.id, user.email)


if __name__ == "__main__":
    asyncio.run(main())
