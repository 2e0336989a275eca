import logging
import time

import httpx

from subscription_webhook.core.config import PayPalConfig
from subscription_webhook.schemas.paypal import VerificationRequest

logger = logging.getLogger(__name__)

# Refresh the OAuth token this many seconds before PayPal expires it
TOKEN_EXPIRY_MARGIN = 60


class PayPalAPIError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PayPalClient:
    """Thin client for the PayPal REST endpoints the webhook needs."""

    def __init__(self, config: PayPalConfig, http: httpx.Client | None = None):
        self.config = config
        self._http = http or httpx.Client(
            base_url=config.api_base, timeout=config.timeout
        )
        self._token: str | None = None
        self._token_expires_at = 0.0

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            r = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PayPalAPIError(f"{method} {path} failed: {exc}") from exc

        if not 200 <= r.status_code < 300:
            raise PayPalAPIError(
                f"{method} {path} returned {r.status_code}: {r.text}",
                status_code=r.status_code,
            )
        try:
            return r.json()
        except ValueError as exc:
            raise PayPalAPIError(
                f"{method} {path} returned invalid JSON", status_code=r.status_code
            ) from exc

    def get_access_token(self) -> str:
        if self._token and time.time() < self._token_expires_at:
            return self._token

        data = self._request(
            "POST",
            "/v1/oauth2/token",
            auth=(self.config.client_id, self.config.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        token = data.get("access_token")
        if not token:
            raise PayPalAPIError("OAuth response missing access_token")

        expires_in = int(data.get("expires_in", 0))
        self._token = token
        self._token_expires_at = time.time() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        logger.info(f"Obtained PayPal access token, expires in {expires_in}s")
        return token

    def verify_webhook_signature(self, request: VerificationRequest) -> str:
        """
        Ask PayPal whether a webhook delivery is authentic.

        Returns the ``verification_status`` PayPal reports, ``SUCCESS`` or
        ``FAILURE``. Raises PayPalAPIError when the call itself fails.
        """
        token = self.get_access_token()
        data = self._request(
            "POST",
            "/v1/notifications/verify-webhook-signature",
            json=request.model_dump(),
            headers={"Authorization": f"Bearer {token}"},
        )
        status = data.get("verification_status")
        if status is None:
            raise PayPalAPIError("Verification response missing verification_status")
        logger.info(f"Webhook verification response: {status}")
        return status
