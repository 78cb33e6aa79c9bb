"""
HTTP client for the SpeedScore REST API.

All requests go through one ``requests.Session``. Authenticated requests carry
the bearer token from the ``SessionStore``; a 401 triggers a single token
refresh and retry, after which the session is logged out. Other failures are
raised as ``ApiError`` once and never retried.
"""

from typing import Any, Dict, Optional

import requests

from speedscore.api.errors import ApiError, AuthenticationError
from speedscore.models.models import AuthTokens
from speedscore.session.store import SessionStore
from speedscore.utils.config_manager import get_config
from speedscore.utils.logger_config import get_logger

logger = get_logger("api_client")

REFRESH_ENDPOINT = "auth/refresh-token"


def decode_body(response: requests.Response) -> Any:
    if not response.text:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_message(body: Any, default: str = "") -> str:
    """Pull the human-readable message out of an error response body"""
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or default)
    if isinstance(body, str) and body.strip():
        return body.strip()
    return default


class ApiClient:
    """Client for the SpeedScore backend"""

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None
    ):
        """
        Initialize the API client

        Args:
            session_store: Session cache providing and receiving auth tokens
            base_url: API base URL (defaults to ``api.base_url`` from config)
            timeout: Request timeout in seconds (defaults to ``api.timeout``)
            http: HTTP session to use (a new ``requests.Session`` by default)
        """
        config = get_config()
        self.base_url = (base_url or config.get("api.base_url")).rstrip("/") + "/"
        self.timeout = timeout or config.get("api.timeout", 30)
        self.refresh_buffer_minutes = config.get("api.token_refresh_buffer_minutes", 5)
        self.session_store = session_store if session_store is not None else SessionStore()
        self.http = http or requests.Session()
        logger.debug(f"Initialized ApiClient with base URL: {self.base_url}")

    def url(self, endpoint: str) -> str:
        return self.base_url + endpoint.lstrip("/")

    # ------------------------------------------------------------------
    # Low-level sending
    # ------------------------------------------------------------------

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.session_store.jwt_token
        if auth and token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send_once(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True
    ) -> requests.Response:
        try:
            response = self.http.request(
                method,
                self.url(endpoint),
                json=json,
                params=params,
                headers=self._headers(auth),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise ApiError(f"Unable to reach the SpeedScore server: {e}", status=None) from e

        logger.debug(f"{method} {endpoint} -> {response.status_code}")
        return response

    def send(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True
    ) -> requests.Response:
        """
        Send a request and return the raw response.

        For authenticated requests an expiring token is refreshed first, and a
        401 is answered with one refresh and retry. If that does not help the
        session is logged out and ``AuthenticationError`` is raised.

        Raises:
            ApiError: If the server cannot be reached
            AuthenticationError: If the session cannot be re-authenticated
        """
        method = method.upper()
        if auth and self._should_refresh_early():
            logger.info("Access token about to expire, refreshing")
            self.refresh_tokens()

        response = self._send_once(method, endpoint, json=json, params=params, auth=auth)
        if response.status_code != 401 or not auth:
            return response

        if self.session_store.refresh_token and self.refresh_tokens():
            logger.info(f"Retrying {method} {endpoint} with refreshed token")
            response = self._send_once(method, endpoint, json=json, params=params, auth=auth)
            if response.status_code != 401:
                return response

        message = error_message(decode_body(response))
        logger.warning(f"{method} {endpoint} unauthorized, logging out")
        self.session_store.logout()
        raise AuthenticationError(message)

    def _should_refresh_early(self) -> bool:
        tokens = self.session_store.tokens
        if not tokens.jwt_token or not tokens.refresh_token or not tokens.jwt_token_expiry:
            return False
        return tokens.is_expired(self.refresh_buffer_minutes)

    def refresh_tokens(self) -> bool:
        """
        Exchange the stored refresh token for a new access token.

        Returns:
            True if new tokens were stored
        """
        refresh_token = self.session_store.refresh_token
        if not refresh_token:
            return False

        response = self._send_once("POST", REFRESH_ENDPOINT, json={"refreshToken": refresh_token}, auth=False)
        body = decode_body(response)
        if response.status_code != 200 or not isinstance(body, dict) or not body.get("jwtToken"):
            logger.warning(f"Token refresh failed with status {response.status_code}")
            return False

        self.session_store.update_tokens(AuthTokens.from_dict(body))
        logger.info("Access token refreshed")
        return True

    # ------------------------------------------------------------------
    # JSON requests
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        auth: bool = True,
        context: Optional[str] = None
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL
            json: Request body
            params: Query parameters
            auth: Whether to send the bearer token
            context: What was being attempted, prefixed to error messages

        Raises:
            ApiError: On any non-2xx response
        """
        response = self.send(method, endpoint, json=json, params=params, auth=auth)
        body = decode_body(response)
        if 200 <= response.status_code < 300:
            return body

        message = error_message(body, default=getattr(response, "reason", None) or f"HTTP {response.status_code}")
        if context:
            message = f"{context}: {message}"
        logger.warning(f"{method.upper()} {endpoint} returned {response.status_code}: {message}")
        raise ApiError(message, status=response.status_code)

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, auth: bool = True, context: Optional[str] = None) -> Any:
        return self.request("GET", endpoint, params=params, auth=auth, context=context)

    def post(self, endpoint: str, json: Any = None, params: Optional[Dict[str, Any]] = None, auth: bool = True, context: Optional[str] = None) -> Any:
        return self.request("POST", endpoint, json=json, params=params, auth=auth, context=context)

    def put(self, endpoint: str, json: Any = None, params: Optional[Dict[str, Any]] = None, auth: bool = True, context: Optional[str] = None) -> Any:
        return self.request("PUT", endpoint, json=json, params=params, auth=auth, context=context)

    def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None, auth: bool = True, context: Optional[str] = None) -> Any:
        return self.request("DELETE", endpoint, params=params, auth=auth, context=context)

    def close(self) -> None:
        self.http.close()
