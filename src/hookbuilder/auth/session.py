from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from hookbuilder.config import Settings, require_configured
from hookbuilder.errors import (
    AuthError,
    InvalidCredentialsError,
    TooManyAttemptsError,
    UnauthorizedUserError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password. Please try again."
UNAUTHORIZED = "You are not authorized to access this application."
TOO_MANY_ATTEMPTS = "Too many unsuccessful login attempts. Please try again later."

_INVALID_CREDENTIAL_CODES = {"NotAuthorizedException", "UserNotFoundException", "InvalidParameterException"}
_THROTTLE_CODES = {"TooManyRequestsException", "LimitExceededException", "TooManyFailedAttemptsException"}


@dataclass(frozen=True)
class User:
    user_id: str
    email: str


class AllowListPolicy:
    """Permits only the configured user ids."""

    def __init__(self, user_ids: Iterable[str]) -> None:
        self.user_ids = frozenset(user_ids)

    def permits(self, user: User) -> bool:
        return user.user_id in self.user_ids


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class AuthService:
    """Email/password sign-in against a Cognito user pool app client."""

    def __init__(self, client: Any, client_id: str, policy: AllowListPolicy) -> None:
        self._client = client
        self.client_id = client_id
        self.policy = policy
        self._user: Optional[User] = None
        self._access_token: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, client: Any = None) -> "AuthService":
        client = client or boto3.client("cognito-idp", region_name=settings.aws_region)
        return cls(client, settings.cognito_client_id, AllowListPolicy(settings.authorized_user_ids))

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    def sign_in(self, email: str, password: str) -> User:
        client_id = require_configured(self.client_id, "COGNITO_CLIENT_ID")
        try:
            response = self._client.initiate_auth(
                ClientId=client_id,
                AuthFlow="USER_PASSWORD_AUTH",
                AuthParameters={"USERNAME": email, "PASSWORD": password},
            )
        except ClientError as exc:
            code = _error_code(exc)
            if code in _INVALID_CREDENTIAL_CODES:
                raise InvalidCredentialsError(INVALID_CREDENTIALS) from exc
            if code in _THROTTLE_CODES:
                raise TooManyAttemptsError(TOO_MANY_ATTEMPTS) from exc
            raise UpstreamError(exc.response.get("Error", {}).get("Message") or code) from exc
        except BotoCoreError as exc:
            raise UpstreamError(str(exc)) from exc

        token = (response.get("AuthenticationResult") or {}).get("AccessToken")
        if not token:
            challenge = response.get("ChallengeName", "unknown")
            raise AuthError(f"Sign-in needs an extra step ({challenge}) that this application does not support.")

        user = self._load_user(token, email)
        if not self.policy.permits(user):
            logger.warning("Rejected sign-in for unauthorized user %s", user.user_id)
            self._revoke(token)
            raise UnauthorizedUserError(UNAUTHORIZED)

        self._user = user
        self._access_token = token
        logger.info("Signed in %s", user.email)
        return user

    def sign_out(self) -> None:
        token = self._access_token
        self._user = None
        self._access_token = None
        if token:
            try:
                self._client.global_sign_out(AccessToken=token)
            except (ClientError, BotoCoreError) as exc:
                raise UpstreamError(f"Sign-out failed: {exc}") from exc

    def _load_user(self, token: str, email: str) -> User:
        try:
            profile = self._client.get_user(AccessToken=token)
        except (ClientError, BotoCoreError) as exc:
            raise UpstreamError(f"Could not load the signed-in user: {exc}") from exc
        attributes = {attr["Name"]: attr["Value"] for attr in profile.get("UserAttributes", [])}
        user_id = attributes.get("sub") or profile.get("Username", "")
        return User(user_id=user_id, email=attributes.get("email", email))

    def _revoke(self, token: str) -> None:
        try:
            self._client.global_sign_out(AccessToken=token)
        except (ClientError, BotoCoreError):
            logger.exception("Could not revoke the session of an unauthorized user")
