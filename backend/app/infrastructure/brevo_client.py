"""Brevo Client — subscribes pre-order sign-ups to the Brevo contacts API.

Invariants:
    - The API key is required at call time (ConfigurationError otherwise)
    - List ids always include the default list; the configured list is deduped against it
    - Non-2xx responses raise ExternalServiceError carrying the upstream status
    - Existing contacts are updated, never duplicated (updateEnabled)
"""

import logging

import httpx

from app.core.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)


def split_name(name: str) -> tuple[str, str]:
    """First space separates first name from last name."""
    first, _, last = name.strip().partition(" ")
    return first, last


def contact_list_ids(list_id: int | None, default_list_id: int) -> list[int]:
    if list_id is None:
        return [default_list_id]
    return list(dict.fromkeys([list_id, default_list_id]))


class BrevoClient:
    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        list_id: int | None,
        default_list_id: int,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.list_id = list_id
        self.default_list_id = default_list_id
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def subscribe(self, name: str, email: str) -> None:
        if not self.api_key:
            logger.error("BREVO_API_KEY is not defined")
            raise ConfigurationError("BREVO_API_KEY")

        first_name, last_name = split_name(name)
        payload = {
            "email": email,
            "attributes": {"PRENOM": first_name, "NOM": last_name},
            "listIds": contact_list_ids(self.list_id, self.default_list_id),
            "updateEnabled": True,
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "api-key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport,
            ) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Brevo request failed: {e}")
            raise ExternalServiceError("Failed to subscribe", service="brevo")

        if response.is_error:
            logger.error(
                f"Brevo API error {response.status_code}: {response.text[:500]}",
                extra={"error_code": "BREVO_ERROR"},
            )
            raise ExternalServiceError(
                "Failed to subscribe",
                service="brevo",
                upstream_status=response.status_code,
            )
