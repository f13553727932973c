# src/services/account_service.py

"""Login, registration and the persisted auth session."""

import asyncio
import dataclasses
import logging
from collections.abc import Callable

from src.api.shop_client import ShopApiClient
from src.config.settings import Settings
from src.models.account import EMAIL_RE, AuthSession
from src.models.errors import ApiError, ValidationError
from src.services.observer import ObserverRegistry, Subscription
from src.storage.local_store import LocalStore

logger = logging.getLogger("storefront.account")

SESSION_KEY = "session"


class AccountService:
    """Holds the signed-in session and keeps the API token in step.

    The token is passed through to the backend unchanged. A stored
    session takes precedence over ``STOREFRONT_API_TOKEN``.
    """

    def __init__(self, api: ShopApiClient, store: LocalStore) -> None:
        self.api = api
        self._store = store
        self._changes: ObserverRegistry[AuthSession | None] = (
            ObserverRegistry("account")
        )
        self._session = self._load()
        if self._session is not None:
            self.api.token = self._session.token

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def is_logged_in(self) -> bool:
        return self._session is not None

    @property
    def user_id(self) -> int:
        """Signed-in user, else ``STOREFRONT_USER_ID`` (0 when unset)."""
        if self._session is not None:
            return self._session.user_id
        return Settings.USER_ID

    def subscribe(
        self, callback: Callable[[AuthSession | None], None]
    ) -> Subscription:
        return self._changes.subscribe(callback)

    async def login(self, email: str, password: str) -> AuthSession:
        """Sign in and persist the session.

        Raises:
            ValidationError: missing or malformed credentials.
            ApiError: the backend refused the login.
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Please enter your email and password.")
        if not EMAIL_RE.match(email):
            raise ValidationError("Please enter a valid email address.")

        session = await asyncio.to_thread(self.api.login, email, password)
        if not session.name or not session.last_name:
            session = await self._with_user_details(session)

        self._session = session
        self.api.token = session.token
        self._save()
        logger.info(
            "Signed in as user %d (%s)", session.user_id, session.role
        )
        return session

    async def register(
        self,
        name: str,
        last_name: str,
        email: str,
        password: str,
        address: str = "",
    ) -> None:
        """Create an account; the user signs in separately afterwards."""
        fields = {
            "Name": (name or "").strip(),
            "Last name": (last_name or "").strip(),
            "Email": (email or "").strip(),
        }
        if not all(fields.values()) or not password:
            raise ValidationError(
                "Please fill in all required fields correctly."
            )
        if not EMAIL_RE.match(fields["Email"]):
            raise ValidationError("Please enter a valid email address.")

        await asyncio.to_thread(
            self.api.register,
            fields["Name"],
            fields["Last name"],
            fields["Email"],
            password,
            (address or "").strip(),
        )
        logger.info("Registered account for %s", fields["Email"])

    def logout(self) -> None:
        if self._session is None:
            return
        logger.info("Signing out user %d", self._session.user_id)
        self._session = None
        self.api.token = Settings.API_TOKEN
        self._store.remove(SESSION_KEY)
        self._changes.publish(None)

    async def _with_user_details(self, session: AuthSession) -> AuthSession:
        """Fill in the name when the login response omitted it."""
        try:
            details = await asyncio.to_thread(
                self.api.get_user, session.user_id
            )
        except ApiError:
            logger.warning(
                "Could not fetch details for user %d",
                session.user_id,
                exc_info=True,
            )
            return session
        return dataclasses.replace(
            session,
            name=session.name or str(details.get("name") or ""),
            last_name=session.last_name or str(details.get("lastName") or ""),
        )

    def _load(self) -> AuthSession | None:
        saved = self._store.get(SESSION_KEY)
        if not isinstance(saved, dict):
            return None
        try:
            session = AuthSession.from_dict(saved)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable session: %s", exc)
            return None
        if not session.token:
            return None
        return session

    def _save(self) -> None:
        if self._session is None:
            return
        self._store.set(SESSION_KEY, self._session.to_dict())
        self._changes.publish(self._session)
