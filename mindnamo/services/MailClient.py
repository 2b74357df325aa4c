"""Outbound mail client (Microsoft Graph, application credentials)."""

import logging
import uuid
import httpx
from datetime import datetime, timedelta
from typing import Optional, Protocol

from mindnamo.core.config import settings
from mindnamo.utils.clock import utcnow

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Best-effort delivery of one message. Never raises; failures come back as a result."""

    async def send(self, destination: str, subject: str, body_html: str) -> dict:
        ...


class MailClient:
    """
    Client for sending transactional email from a single authorized sender mailbox.

    `send` returns ``{"success": True, "id": ...}`` or
    ``{"success": False, "error": ...}``; it does not retry beyond one token
    refresh on a 403.
    """

    BASE_URL = "https://graph.microsoft.com/v1.0"

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        sender: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.sender = sender
        self.timeout = timeout
        self.transport = transport
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    @property
    def configured(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)

    async def _get_access_token(self, client: httpx.AsyncClient, force_refresh: bool = False) -> str:
        """Get access token for application (not user-delegated)."""
        if not force_refresh and self._access_token and self._token_expiry:
            if utcnow() < self._token_expiry - timedelta(minutes=5):
                return self._access_token

        token_url = f"https://login.microsoftonline.com/{self.tenant_id}/oauth2/v2.0/token"
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": "https://graph.microsoft.com/.default",
            "grant_type": "client_credentials"
        }

        response = await client.post(token_url, data=data)
        response.raise_for_status()

        token_data = response.json()
        self._access_token = token_data["access_token"]
        expires_in = token_data.get("expires_in", 3600)
        self._token_expiry = utcnow() + timedelta(seconds=expires_in)
        logger.info(f"✅ [Mail] New access token obtained, expires in {expires_in}s")
        return self._access_token

    def clear_token_cache(self):
        self._access_token = None
        self._token_expiry = None

    async def send(self, destination: str, subject: str, body_html: str) -> dict:
        if not self.configured:
            logger.error("❌ [Mail] No email provider configured. Set MAIL_TENANT_ID, MAIL_CLIENT_ID and MAIL_CLIENT_SECRET")
            return {"success": False, "error": "No email provider configured"}

        message_id = str(uuid.uuid4())
        message = {
            "message": {
                "subject": subject,
                "body": {
                    "contentType": "HTML",
                    "content": body_html
                },
                "toRecipients": [{"emailAddress": {"address": destination}}],
                "internetMessageHeaders": [{"name": "X-MindNamo-Message-Id", "value": message_id}],
            },
            "saveToSentItems": "false"
        }
        url = f"{self.BASE_URL}/users/{self.sender}/sendMail"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                for attempt in range(2):
                    token = await self._get_access_token(client, force_refresh=attempt > 0)
                    response = await client.post(
                        url,
                        headers={"Authorization": f"Bearer {token}"},
                        json=message
                    )
                    if response.status_code == 403 and attempt == 0:
                        logger.warning("⚠️ [Mail] Send got 403, refreshing token and retrying...")
                        self.clear_token_cache()
                        continue
                    break

            if response.status_code not in (200, 202):
                logger.error(f"❌ [Mail] Failed to send email: {response.status_code} - {response.text}")
                return {"success": False, "error": f"Mail provider returned {response.status_code}"}

        except httpx.HTTPError as e:
            logger.error(f"❌ [Mail] Transport error sending to {destination}: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"✅ [Mail] Email sent to {destination} ({message_id})")
        return {"success": True, "id": message_id}


mail_client = MailClient(
    tenant_id=settings.MAIL_TENANT_ID,
    client_id=settings.MAIL_CLIENT_ID,
    client_secret=settings.MAIL_CLIENT_SECRET,
    sender=settings.MAIL_SENDER,
)


async def get_notifier() -> Notifier:
    """FastAPI dependency for the outbound notifier."""
    return mail_client
