"""
Object storage collaborator.

Issues presigned upload and access URLs for meeting attachments and
deletes stored objects.
"""

from calsync.clients.base import ServiceClient, ServiceClientError


class StorageClient(ServiceClient):
    """Client for the object storage service."""

    service_name = "Storage service"

    async def generate_upload_url(self, key: str, content_type: str) -> str:
        """Get a presigned URL for uploading `key`."""
        data = await self._send(
            "POST",
            "/generate-presigned-url",
            {"key": key, "contentType": content_type},
        )
        return _url_of(data)

    async def generate_access_url(self, key: str) -> str:
        """Get a time-limited URL for reading `key`."""
        data = await self._send("POST", "/generate-access-url", {"key": key})
        return _url_of(data)

    async def delete_object(self, key: str) -> dict:
        """
        Delete a stored object.

        Returns:
            {"success": bool, "message": str}
        """
        data = await self._send("DELETE", "/delete-object", {"key": key})
        return {
            "success": bool(data.get("success", False)),
            "message": data.get("message", ""),
        }


def _url_of(data: dict) -> str:
    url = (data or {}).get("url")
    if not url:
        raise ServiceClientError("Storage service response did not include a url")
    return url
