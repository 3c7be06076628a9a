# gxregistry/client.py
"""
Client SDK for the registry HTTP server.

Usage:
    client = RegistryClient("http://localhost:8080")
    client.publish("foo", "QmFoo...", author="whyrusleeping")
    print(client.get("foo"))
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen


class ClientError(RuntimeError):
    """Server rejected a request."""

    def __init__(self, message: str, status: int = 0, kind: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.kind = kind


@dataclass
class PublishOutcome:
    """Server response to a publish."""
    name: str
    content_address: str
    size: Optional[int] = None
    previous_address: Optional[str] = None
    pin_error: Optional[str] = None
    unpin_error: Optional[str] = None


class RegistryClient:
    """
    Client for the registry server.

    Args:
        base_url: Server URL (e.g., "http://localhost:8080")
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 300):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, data: dict = None) -> dict:
        """Make HTTP request to server."""
        url = f"{self.base_url}{path}"

        if data is not None:
            body = json.dumps(data).encode()
            headers = {"Content-Type": "application/json"}
        else:
            body = None
            headers = {}

        req = Request(url, data=body, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.timeout) as response:
                return json.loads(response.read().decode())
        except HTTPError as e:
            error_body = e.read().decode()
            try:
                error_data = json.loads(error_body)
            except json.JSONDecodeError:
                raise ClientError(f"HTTP {e.code}: {error_body}", status=e.code)
            raise ClientError(
                error_data.get("error", str(e)),
                status=e.code,
                kind=error_data.get("kind"),
            )
        except URLError as e:
            raise ConnectionError(f"Failed to connect to server: {e}")

    def health(self) -> bool:
        """Check if server is healthy."""
        try:
            result = self._request("GET", "/health")
            return result.get("status") == "ok"
        except (ClientError, ConnectionError):
            return False

    def publish(self, name: str, content_address: str, author: str = "") -> PublishOutcome:
        """
        Publish a package.

        Raises:
            ClientError: publish rejected; ``kind`` names the failure
        """
        data = self._request("POST", "/publish", {
            "name": name,
            "hash": content_address,
            "author": author,
        })
        return PublishOutcome(
            name=data["name"],
            content_address=data["hash"],
            size=data.get("size"),
            previous_address=data.get("previous"),
            pin_error=data.get("pin_error"),
            unpin_error=data.get("unpin_error"),
        )

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        """Get one entry, or None if the name is not registered."""
        try:
            return self._request("GET", f"/packages/{quote(name, safe='')}")
        except ClientError as e:
            if e.status == 404:
                return None
            raise

    def list(self) -> Dict[str, Dict[str, Any]]:
        """Get the full registry mapping."""
        return self._request("GET", "/packages")

    def command(self, content: str, sender: str = "", target: str = "") -> Optional[str]:
        """Run a chat command, returning the reply text if any."""
        data = self._request("POST", "/command", {
            "sender": sender,
            "target": target,
            "content": content,
        })
        return data.get("reply")
