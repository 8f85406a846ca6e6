"""Port for resolving intermediate links to direct stream links."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from hublinks.domain.entities.links import StreamLink


@runtime_checkable
class LinkResolverPort(Protocol):
    """Resolves an intermediate source-site URL to direct download links.

    Implementations handle site-specific extraction logic (token decoding,
    redirect chains, landing page classification).
    """

    @property
    def name(self) -> str:
        """Provider name this resolver handles (e.g. 'hubcloud')."""
        ...

    async def resolve(self, url: str) -> list[StreamLink]:
        """Resolve an intermediate URL to stream links.

        Never raises. Returns ``[]`` when resolution fails.
        """
        ...
