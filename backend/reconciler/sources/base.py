"""
Base interface for certification lookups.
Sources answer with a MatchResult; failed queries map to the Unknown sentinel instead of raising.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from reconciler.matching import MatchResult
from reconciler.session import Session


class CertificationSource(ABC):
    """Looks an entity up in an external certification registry."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        pass

    @abstractmethod
    async def lookup(self, name: str, address: str, session: Session) -> MatchResult:
        """
        Search the registry for ``name`` and match the results.

        Implementations must turn HTTP and decoding failures into
        ``CertificationStatus.UNKNOWN``; anything else may propagate.
        """
        pass
