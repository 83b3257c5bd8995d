"""Client for the Airtable Web API"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid Personal Access Token. Please check your token and try again."


class AirtableClient:
    """Client for the Airtable metadata and records endpoints"""

    def __init__(self, access_token: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.AIRTABLE_API_URL.rstrip("/")
        self.timeout = httpx.Timeout(settings.AIRTABLE_TIMEOUT)
        self.headers = {"Authorization": f"Bearer {access_token}"}
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, headers=self.headers, transport=self.transport)

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.status_code == 401:
            raise ExternalServiceError(INVALID_TOKEN_MESSAGE)
        if response.is_error:
            logger.error(f"Airtable API error: {response.status_code} {response.text[:200]}")
            raise ExternalServiceError(
                f"Airtable API error: {response.status_code} {response.reason_phrase}"
            )

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.get(f"{self.base_url}{path}", params=params)
            self._check(response)
            return response.json()

    async def list_bases(self) -> List[Dict[str, Any]]:
        """
        List bases the token can access.

        Returns:
            ``[{"id", "name", "permission_level"}]``

        Raises:
            ExternalServiceError: on a rejected token or an API error
        """
        logger.info("Listing Airtable bases")
        data = await self._get("/meta/bases")
        return [
            {
                "id": base.get("id"),
                "name": base.get("name"),
                "permission_level": base.get("permissionLevel") or "read",
            }
            for base in data.get("bases") or []
        ]

    async def list_tables(self, base_id: str) -> List[Dict[str, Any]]:
        """Tables of a base with their fields"""
        logger.info(f"Listing tables of Airtable base {base_id}")
        data = await self._get(f"/meta/bases/{base_id}/tables")
        return [
            {
                "id": table.get("id"),
                "name": table.get("name"),
                "description": table.get("description"),
                "primary_field_id": table.get("primaryFieldId"),
                "fields": [
                    {"id": f.get("id"), "name": f.get("name"), "type": f.get("type")}
                    for f in table.get("fields") or []
                ],
            }
            for table in data.get("tables") or []
        ]

    async def fetch_records(self, base_id: str, table_id: str, max_records: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch table records, following pagination offsets.

        Args:
            base_id: Airtable base ID
            table_id: Airtable table ID or name
            max_records: Stop after this many records, defaults to AIRTABLE_MAX_RECORDS

        Returns:
            Records as ``{"id", "createdTime", "fields"}``
        """
        limit = max_records or settings.AIRTABLE_MAX_RECORDS
        records: List[Dict[str, Any]] = []
        offset = None

        async with self._client() as client:
            while True:
                params: Dict[str, Any] = {"pageSize": settings.AIRTABLE_PAGE_SIZE}
                if offset:
                    params["offset"] = offset
                response = await client.get(f"{self.base_url}/{base_id}/{table_id}", params=params)
                self._check(response)
                data = response.json()

                records.extend(data.get("records") or [])
                offset = data.get("offset")
                logger.debug(f"Fetched page of Airtable records, total {len(records)}")
                if not offset or len(records) >= limit:
                    break

        logger.info(f"Fetched {len(records[:limit])} records from {base_id}/{table_id}")
        return records[:limit]
