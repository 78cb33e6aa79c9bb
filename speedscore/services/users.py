"""Authentication and user account operations."""

from typing import Any, Dict, Optional

from speedscore.api.client import decode_body, error_message
from speedscore.api.errors import ApiError, EmailNotVerifiedError
from speedscore.models.models import AuthTokens, User
from speedscore.services.base import BaseService
from speedscore.utils.logger_config import get_logger

logger = get_logger("user_service")


class UserService(BaseService):

    def login(self, email: str, password: str) -> User:
        """
        Log in and store the user and tokens in the session.

        Raises:
            EmailNotVerifiedError: If the account's email is not verified (202)
            ApiError: If the credentials are rejected
        """
        response = self.client.send("POST", "auth/login", json={"email": email, "password": password}, auth=False)
        body = decode_body(response)

        if response.status_code == 202:
            raise EmailNotVerifiedError(
                "Failed to login to user account, user email is not verified, please check your email "
                f"to verify it. {error_message(body)}".strip()
            )
        if response.status_code != 200 or not isinstance(body, dict):
            raise ApiError(f"Login failed: {error_message(body, 'invalid email or password')}", status=response.status_code)

        user_data = body.get("user") or {}
        self.session.login(user_data, AuthTokens.from_dict(body))
        return User.from_dict(user_data)

    def logout(self) -> None:
        """Revoke the refresh token on the server and clear the local session"""
        refresh_token = self.session.refresh_token
        try:
            if refresh_token:
                self.client.post("auth/logout", json={"refreshToken": refresh_token}, auth=False, context="Failed to log out")
        finally:
            self.session.logout()

    def refresh(self) -> bool:
        return self.client.refresh_tokens()

    def register(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.post("users/register", json=user_data, auth=False, context="Failed to create account")

    def get_current_user(self) -> User:
        """Fetch the logged-in user and refresh the cached copy"""
        data = self.client.get("users/get-user", context="Failed to fetch user")
        self.session.update_user(data)
        return User.from_dict(data)

    def get_user(self, user_id: str) -> User:
        return User.from_dict(self.client.get(f"users/{user_id}", context="Failed to fetch user"))

    def update_user(self, updates: Dict[str, Any], user_id: Optional[str] = None) -> User:
        user_id = self.require_user_id(user_id)
        data = self.client.put(f"users/update-user/{user_id}", json=updates, context="Failed to update user")
        if user_id == self.session.user_id and isinstance(data, dict):
            self.session.update_user(data)
        return User.from_dict(data or {})

    def verify_email(self, user_id: str, token: str) -> Dict[str, Any]:
        return self.client.post("auth/email-verify/", json={"userId": user_id, "token": token}, auth=False,
                                context="Email verification failed")

    def resend_verification_email(self, email: str) -> Dict[str, Any]:
        return self.client.post("auth/resend-email-verification/", json={"email": email}, auth=False,
                                context="Failed to resend verification email")

    def send_password_reset_link(self, email: str) -> Dict[str, Any]:
        return self.client.post("auth/send-password-reset-link", json={"email": email}, auth=False,
                                context="Failed to send password reset link")

    def reset_password(self, token: str, password: str, confirm_password: str) -> Dict[str, Any]:
        if password != confirm_password:
            raise ApiError("Passwords do not match", status=None)
        return self.client.post(
            "auth/reset-password",
            json={"token": token, "password": password, "confirmPassword": confirm_password},
            auth=False,
            context="Failed to reset password",
        )
