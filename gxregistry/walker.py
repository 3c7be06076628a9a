# gxregistry/walker.py
"""
DAG size walker.

Sums the local size of every object reachable from a package root. The
walk stops as soon as the running total crosses the ceiling, so an
oversized package costs at most ceiling-worth of lookups.

Each distinct address is counted once: a child linked from several
parents occupies storage once, and a revisit is skipped. This also
makes the walk terminate on graphs with cycles.
"""

import logging
from typing import List, Optional, Set

from .errors import SizeExceeded
from .store import ContentStore

logger = logging.getLogger(__name__)

MAX_PACKAGE_SIZE = 512000


class DAGSizeWalker:
    """
    Computes the total byte size of a content DAG.

    Args:
        store: Content store used for size queries and listings
        max_size: Byte ceiling; crossing it raises SizeExceeded
        max_nodes: Optional bound on distinct objects visited
    """

    def __init__(self, store: ContentStore, max_size: int = MAX_PACKAGE_SIZE,
                 max_nodes: Optional[int] = None):
        self.store = store
        self.max_size = max_size
        self.max_nodes = max_nodes

    def compute_size(self, root: str) -> int:
        """
        Walk the DAG under root and return its total size.

        Raises:
            SizeExceeded: running total exceeded max_size, or the graph has
                more than max_nodes distinct objects
            FetchFailed: a size query or listing failed
        """
        total = 0
        visited: Set[str] = set()
        stack: List[str] = [root]

        while stack:
            address = stack.pop()
            if address in visited:
                continue
            visited.add(address)

            if self.max_nodes is not None and len(visited) > self.max_nodes:
                raise SizeExceeded(
                    self.max_size, total, address=root,
                    message=f"package too large! must have under {self.max_nodes} objects",
                )

            total += self.store.local_size(address)
            if total > self.max_size:
                logger.debug(f"Size walk of {root} exceeded {self.max_size} at {address}")
                raise SizeExceeded(self.max_size, total, address=root)

            links = self.store.list_children(address)
            # Reversed so children are visited in listing order
            for link in reversed(links):
                if link.address not in visited:
                    stack.append(link.address)

        return total


def compute_size(store: ContentStore, root: str, max_size: int = MAX_PACKAGE_SIZE) -> int:
    """Convenience wrapper around DAGSizeWalker.compute_size."""
    return DAGSizeWalker(store, max_size=max_size).compute_size(root)
