# gxregistry/store.py
"""
Content store client.

The registry never talks to the content network directly; it goes through
the small ContentStore capability interface:

    fetch(address)          -> raw bytes of an object
    list_children(address)  -> ordered child links (name, address, size)
    local_size(address)     -> object's own (non-recursive) byte size
    pin(address)            -> mark retained
    unpin(address)          -> mark releasable

IPFSStore implements it against the HTTP API of a local IPFS daemon.

Usage:
    store = IPFSStore("http://localhost:5001", timeout=30)
    for link in store.list_children("QmRoot..."):
        print(link.name, link.address)
"""

import http.client
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Type
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .errors import FetchFailed, PinFailed, RegistryError, StoreTimeout, UnpinFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Link:
    """A named child link of an object."""
    name: str
    address: str
    size: int = 0


class ContentStore:
    """
    Capability interface over a content-addressed object store.

    Implementations raise FetchFailed (or StoreTimeout) from the lookup
    calls and PinFailed / UnpinFailed from the retention calls.
    """

    def fetch(self, address: str) -> bytes:
        raise NotImplementedError

    def list_children(self, address: str) -> List[Link]:
        raise NotImplementedError

    def local_size(self, address: str) -> int:
        raise NotImplementedError

    def pin(self, address: str) -> None:
        raise NotImplementedError

    def unpin(self, address: str) -> None:
        raise NotImplementedError


class IPFSStore(ContentStore):
    """
    ContentStore backed by an IPFS daemon's HTTP API.

    Args:
        api_url: Daemon API address (e.g., "http://localhost:5001")
        timeout: Deadline in seconds applied to every call
    """

    def __init__(self, api_url: str = "http://localhost:5001", timeout: float = 30):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _request(self, command: str, address: str = None,
                 error_cls: Type[RegistryError] = FetchFailed,
                 **params: Any) -> bytes:
        """POST an API command and return the raw response body."""
        query: Dict[str, Any] = dict(params)
        if address is not None:
            query["arg"] = address
        url = f"{self.api_url}/api/v0/{command}"
        if query:
            url = f"{url}?{urlencode(query)}"

        req = Request(url, data=b"", method="POST")

        try:
            with urlopen(req, timeout=self.timeout) as response:
                return response.read()
        except HTTPError as e:
            body = e.read().decode(errors="replace")
            try:
                message = json.loads(body).get("Message", body)
            except (json.JSONDecodeError, AttributeError):
                message = body or str(e)
            raise error_cls(f"{command} {address}: {message}", address=address)
        except TimeoutError:
            raise StoreTimeout(f"{command} {address}: timed out after {self.timeout}s",
                               address=address)
        except URLError as e:
            if isinstance(e.reason, TimeoutError):
                raise StoreTimeout(f"{command} {address}: timed out after {self.timeout}s",
                                   address=address)
            raise error_cls(f"{command} {address}: {e.reason}", address=address)
        except (OSError, http.client.HTTPException) as e:
            # Dropped connections and truncated responses
            raise error_cls(f"{command} {address}: {e!r}", address=address)

    def _request_json(self, command: str, address: str = None,
                      error_cls: Type[RegistryError] = FetchFailed,
                      **params: Any) -> Dict[str, Any]:
        body = self._request(command, address, error_cls, **params)
        try:
            return json.loads(body.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise error_cls(f"{command} {address}: bad response: {e}", address=address)

    def health(self) -> bool:
        """Check if the daemon is reachable."""
        try:
            self._request_json("version")
            return True
        except RegistryError:
            return False

    def fetch(self, address: str) -> bytes:
        return self._request("cat", address)

    def list_children(self, address: str) -> List[Link]:
        data = self._request_json("ls", address)
        try:
            objects = data.get("Objects") or []
            raw_links = (objects[0].get("Links") or []) if objects else []
            return [
                Link(
                    name=link.get("Name", ""),
                    address=link["Hash"],
                    size=int(link.get("Size", 0)),
                )
                for link in raw_links
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FetchFailed(f"ls {address}: unexpected response: {e}", address=address)

    def local_size(self, address: str) -> int:
        data = self._request_json("block/stat", address)
        try:
            return int(data["Size"])
        except (KeyError, TypeError, ValueError) as e:
            raise FetchFailed(f"block/stat {address}: unexpected response: {e}",
                              address=address)

    def pin(self, address: str) -> None:
        logger.debug(f"Pinning {address}")
        try:
            self._request_json("pin/add", address, error_cls=PinFailed)
        except StoreTimeout as e:
            raise PinFailed(str(e), address=address) from e

    def unpin(self, address: str) -> None:
        logger.debug(f"Unpinning {address}")
        try:
            self._request_json("pin/rm", address, error_cls=UnpinFailed)
        except StoreTimeout as e:
            raise UnpinFailed(str(e), address=address) from e


__all__ = ["Link", "ContentStore", "IPFSStore"]
