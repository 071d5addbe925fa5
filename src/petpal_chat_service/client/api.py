"""
REST client for the chat service.

Wraps the conversation, message and read-state endpoints. Responses are
returned as decoded JSON (camelCase keys, as served).
"""
import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx

logger = logging.getLogger(__name__)

IdLike = Union[str, UUID]


class ChatApiError(Exception):
    """Non-success response (or transport failure) from the chat service."""

    def __init__(self, status_code: int, detail: Any, code: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.code = code
        super().__init__(f"{status_code}: {detail}")


class ChatApiClient:
    """Client for the chat service REST API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Service URL including the root path, e.g. ``http://host/api/v1``
            token: Optional bearer token sent with every request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used to mount an in-process app)
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else None
        self._client = httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Error connecting to chat service ({method} {path}): {e}")
            raise ChatApiError(503, "Chat service unavailable") from e

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {"detail": response.text}
        detail = body.get("detail") if isinstance(body, dict) else body
        code = body.get("code") if isinstance(body, dict) else None
        logger.debug(f"{method} {path} failed with status {response.status_code}: {detail}")
        raise ChatApiError(response.status_code, detail, code)

    async def list_conversations(self, email: str) -> List[Dict[str, Any]]:
        return await self._request("GET", "/conversations", params={"email": email})

    async def get_messages(
        self, conversation_id: IdLike, page: int = 1, limit: Optional[int] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page}
        if limit is not None:
            params["limit"] = limit
        return await self._request(
            "GET", f"/conversations/{conversation_id}/messages", params=params
        )

    async def send_message(
        self, conversation_id: IdLike, content: str, sender_email: str, sender_name: str
    ) -> Dict[str, Any]:
        payload = {
            "conversationId": str(conversation_id),
            "content": content,
            "senderEmail": sender_email,
            "senderName": sender_name,
        }
        return await self._request("POST", "/messages", json=payload)

    async def mark_read(self, conversation_id: IdLike, user_email: str) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/conversations/{conversation_id}/read", json={"userEmail": user_email}
        )

    async def resolve_by_adoption(
        self, adoption_request_id: IdLike, user_email: str
    ) -> Optional[Dict[str, Any]]:
        """
        Look up (creating if needed) the conversation for an adoption request.

        Returns None when the adoption is unknown or not approved yet; that is
        the normal "no chat yet" state rather than an error.
        """
        try:
            return await self._request(
                "GET",
                f"/conversations/by-adoption/{adoption_request_id}",
                params={"userEmail": user_email},
            )
        except ChatApiError as e:
            if e.status_code in (404, 409):
                return None
            raise
