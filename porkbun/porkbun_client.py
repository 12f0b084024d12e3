"""
porkbun/porkbun_client.py

Responsibility: Implements the DNSProvider protocol using the Porkbun JSON API v3.
All Porkbun HTTP calls are concentrated here: no other file may call the
Porkbun API directly.
Does NOT: partition changes, match records, or decide what to write.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from exceptions import ConfigurationError, DnsProviderError
from porkbun.dns_provider import ProviderRecord

logger = logging.getLogger(__name__)

PORKBUN_BASE_URL = "https://api.porkbun.com/api/json/v3"


class PorkbunClient:
    """
    Implements DNSProvider for the Porkbun DNS API (v3).

    All outbound Porkbun requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        api_secret: str,
        base_url: str = PORKBUN_BASE_URL,
    ) -> None:
        """
        Initialises the client with an HTTP client and Porkbun credentials.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_key: The Porkbun API key.
            api_secret: The Porkbun secret API key.
            base_url: API root; overridable for tests and proxies.

        Raises:
            ConfigurationError: If either credential is blank.
        """
        if not api_key:
            raise ConfigurationError("porkbun provider requires an API key")
        if not api_secret:
            raise ConfigurationError("porkbun provider requires an API secret")

        self._client = http_client
        self._base_url = base_url.rstrip("/")
        # NOTE: Porkbun authenticates via the JSON body, not headers.
        self._auth = {"apikey": api_key, "secretapikey": api_secret}

    # ---------------------------------------------------------------------------
    # DNSProvider implementation
    # ---------------------------------------------------------------------------

    async def ping(self) -> str:
        """
        Checks the credentials against the Porkbun ping endpoint.

        Returns:
            The public IP Porkbun saw the request coming from.

        Raises:
            DnsProviderError: If Porkbun rejects the credentials.
        """
        logger.debug("performing login to Porkbun API")
        data = await self._request("/ping")
        logger.debug("successfully logged in to Porkbun API")
        return data.get("yourIp", "")

    async def list_records(self, zone: str) -> list[ProviderRecord]:
        """
        Returns all records in the given Porkbun domain.

        Porkbun reports fully-qualified names; they are converted to
        zone-relative names here so callers only ever see relative names.

        Args:
            zone: The Porkbun domain, e.g. "example.com".

        Returns:
            A list of ProviderRecord instances, possibly empty.

        Raises:
            DnsProviderError: If the Porkbun API returns an error.
        """
        data = await self._request(f"/dns/retrieve/{zone}")
        records = [self._parse_record(raw, zone) for raw in data.get("records") or []]
        logger.debug("retrieved %d record(s) for zone %s", len(records), zone)
        return records

    async def create_record(self, zone: str, record: ProviderRecord) -> str:
        """
        Creates a record in the given Porkbun domain.

        Args:
            zone: The Porkbun domain.
            record: The record to create; the id field is ignored.

        Returns:
            The identifier Porkbun assigned to the new record.

        Raises:
            DnsProviderError: If the Porkbun API returns an error.
        """
        data = await self._request(f"/dns/create/{zone}", self._record_payload(record))
        return str(data.get("id", ""))

    async def update_record(self, zone: str, record_id: int, record: ProviderRecord) -> None:
        """
        Overwrites the record with the given id.

        Args:
            zone: The Porkbun domain.
            record_id: Porkbun's numeric record id.
            record: The desired record state.

        Raises:
            DnsProviderError: If the Porkbun API returns an error.
        """
        await self._request(f"/dns/edit/{zone}/{record_id}", self._record_payload(record))

    async def delete_record(self, zone: str, record_id: int) -> None:
        """
        Deletes the record with the given id.

        Args:
            zone: The Porkbun domain.
            record_id: Porkbun's numeric record id.

        Raises:
            DnsProviderError: If the Porkbun API returns an error.
        """
        await self._request(f"/dns/delete/{zone}/{record_id}")

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _request(self, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Sends an authenticated POST to the Porkbun API.

        Args:
            path: Endpoint path below the API root, e.g. "/dns/retrieve/example.com".
            payload: Optional request fields; credentials are added here.

        Returns:
            The parsed JSON response body as a dict.

        Raises:
            DnsProviderError: If the HTTP call fails or the API returns a
                              status other than SUCCESS.
        """
        url = f"{self._base_url}{path}"
        body = {**self._auth, **(payload or {})}

        logger.debug("POST %s", url)
        try:
            response = await self._client.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DnsProviderError(
                f"Porkbun API error {exc.response.status_code} for POST {path}: "
                f"{self._error_message(exc.response)}"
            ) from exc
        except httpx.RequestError as exc:
            raise DnsProviderError(
                f"Network error calling Porkbun API (POST {path}): {exc}"
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise DnsProviderError(f"Porkbun API returned invalid JSON for POST {path}") from exc

        if not isinstance(data, dict):
            raise DnsProviderError(
                f"Porkbun API returned a JSON {type(data).__name__} instead of an object for POST {path}"
            )

        # NOTE: Porkbun wraps all responses in {"status": "SUCCESS" | "ERROR", ...}
        if data.get("status") != "SUCCESS":
            raise DnsProviderError(
                f"Porkbun API returned status {data.get('status')!r} for POST {path}: "
                f"{data.get('message', '')}"
            )

        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text
        if isinstance(data, dict):
            return str(data.get("message", response.text))
        return response.text

    @staticmethod
    def _record_payload(record: ProviderRecord) -> dict[str, Any]:
        return {
            "name": record.name,
            "type": record.type,
            "content": record.content,
            "ttl": record.ttl,
        }

    @staticmethod
    def _parse_record(raw: dict[str, Any], zone: str) -> ProviderRecord:
        """
        Converts a raw Porkbun record dict into a ProviderRecord.

        Args:
            raw: A single record object from the retrieve response.
            zone: The domain the record was listed from.

        Returns:
            A ProviderRecord whose name is relative to zone ("" for apex).
        """
        name = raw.get("name", "")
        if name == zone:
            name = ""
        elif name.endswith("." + zone):
            name = name[: -(len(zone) + 1)]

        return ProviderRecord(
            id=str(raw.get("id", "")),
            name=name,
            type=raw.get("type", ""),
            content=raw.get("content", ""),
            ttl=str(raw.get("ttl", "")),
        )

