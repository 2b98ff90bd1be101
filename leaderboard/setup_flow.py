"""
One-time creation of the first admin account.

The flow moves through these states:

    CHECKING_EXISTENCE -> DISABLED            (an admin already exists)
    CHECKING_EXISTENCE -> AWAITING_KEY
    AWAITING_KEY       -> KEY_VERIFIED        (correct setup key)
    KEY_VERIFIED       -> ACCOUNT_CREATED

A verified key is represented by a short-lived signed setup token held by
the client, so the state can be rebuilt on every request. The setup key
itself is only ever compared on the server.
"""

import enum
import hmac
import logging
from typing import Any, Optional

from .database import LeaderboardStore
from .errors import AlreadyExists, InvalidSetupKey
from .tokens import SETUP_SCOPE, TokenSigner
from .validation import validate_new_admin

logger = logging.getLogger(__name__)

SETUP_COOKIE = "admin_setup"

SETUP_DISABLED_MESSAGE = "Admin setup is disabled. Admin users already exist."


class SetupState(enum.Enum):
    CHECKING_EXISTENCE = "checking_existence"
    DISABLED = "disabled"
    AWAITING_KEY = "awaiting_key"
    KEY_VERIFIED = "key_verified"
    ACCOUNT_CREATED = "account_created"


class SetupFlow:
    """Gates admin account creation behind the server-held setup key."""

    def __init__(
        self,
        store: LeaderboardStore,
        config: Any,
        signer: TokenSigner,
    ) -> None:
        self.store = store
        self.config = config
        self.signer = signer

    @property
    def token_max_age(self) -> int:
        return self.config.get("admin", "setup_token_max_age")

    async def current_state(
        self,
        setup_token: Optional[str] = None,
    ) -> SetupState:
        """
        Rebuild the flow state for a request.

        @param setup_token: Setup token from the client, if any
        @return: DISABLED, AWAITING_KEY or KEY_VERIFIED
        """
        if await self.store.admin_exists():
            return SetupState.DISABLED
        if self.signer.verify(setup_token, SETUP_SCOPE) is not None:
            return SetupState.KEY_VERIFIED
        return SetupState.AWAITING_KEY

    async def verify_key(
        self,
        supplied_key: Any,
    ) -> str:
        """
        Compare a caller-supplied key with the server's setup key.

        @param supplied_key: Key typed by the caller
        @return: Setup token proving the key was verified
        @raise ConfigurationError: If no setup key is configured
        @raise InvalidSetupKey: If the key does not match
        @raise AlreadyExists: If an admin already exists
        """
        expected_key = self.config.get_setup_key()

        if not isinstance(supplied_key, str) or not hmac.compare_digest(
            supplied_key.encode("utf-8"), expected_key.encode("utf-8")
        ):
            logger.warning("Setup key mismatch")
            raise InvalidSetupKey("Invalid setup key. Access denied.")

        if await self.store.admin_exists():
            logger.info("Setup key verified but admin users already exist")
            raise AlreadyExists(SETUP_DISABLED_MESSAGE)

        logger.info("Setup key verified")
        return self.signer.issue(SETUP_SCOPE, self.token_max_age)

    async def create_account(
        self,
        setup_token: Optional[str],
        username: Any,
        password: Any,
        confirm_password: Any,
    ) -> str:
        """
        Create the first admin once the setup key has been verified.

        Existence is checked again right before the insert; the store's
        conditional insert settles any remaining race.

        @param setup_token: Token returned by verify_key
        @param username: Requested username
        @param password: Requested password
        @param confirm_password: Password typed a second time
        @return: Identifier of the new admin
        """
        if self.signer.verify(setup_token, SETUP_SCOPE) is None:
            raise InvalidSetupKey("Setup key has not been verified or has expired.")

        username, password = validate_new_admin(
            username,
            password,
            confirm_password,
            min_length=self.config.get("admin", "min_password_length"),
        )

        if await self.store.admin_exists():
            raise AlreadyExists(SETUP_DISABLED_MESSAGE)

        return await self.store.create_admin_credential(username, password)
