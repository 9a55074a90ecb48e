"""
Shared test doubles: an in-memory catalog store with all-or-nothing batch
writes, entity factories and HTTP fixtures for the external sources.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

import httpx
import pytest

from shared.models.domain import Entity, RunLog, UpdateProposal
from shared.models.enums import CertificationStatus
from shared.utils.http_client import ExternalHTTPClient


class FakeCatalogStore:
    """
    In-memory CatalogStore.

    ``fail_commit_at`` makes add_proposals raise after staging that many
    rows; staged rows are discarded, mirroring a rolled-back transaction.
    """

    def __init__(
        self,
        entities: Sequence[Entity] = (),
        fail_commit_at: Optional[int] = None,
        fail_load: Optional[Exception] = None,
        fail_run_log: Optional[Exception] = None,
    ) -> None:
        self.entities = list(entities)
        self.proposals: list[UpdateProposal] = []
        self.run_logs: list[RunLog] = []
        self.commit_calls = 0
        self._fail_commit_at = fail_commit_at
        self._fail_load = fail_load
        self._fail_run_log = fail_run_log

    async def load_entities(self, active_only: bool = False) -> list[Entity]:
        if self._fail_load is not None:
            raise self._fail_load
        return [e for e in self.entities if e.is_active or not active_only]

    async def add_proposals(self, proposals: Sequence[UpdateProposal]) -> None:
        self.commit_calls += 1
        staged: list[UpdateProposal] = []
        for i, proposal in enumerate(proposals):
            if self._fail_commit_at is not None and i == self._fail_commit_at:
                raise RuntimeError("datastore unavailable")
            staged.append(proposal)
        self.proposals.extend(staged)

    async def add_run_log(self, run_log: RunLog) -> None:
        if self._fail_run_log is not None:
            raise self._fail_run_log
        self.run_logs.append(run_log)


def _make_entity(
    entity_id: str = "r1",
    name: str = "Al-Falah Restaurant",
    address: str = "1 Jalan Besar, Singapore 123456",
    status: CertificationStatus = CertificationStatus.NOT_CERTIFIED,
    is_active: bool = True,
    socials: Optional[dict[str, str]] = None,
) -> Entity:
    return Entity(
        id=entity_id,
        name=name,
        address=address,
        status=status,
        is_active=is_active,
        socials=socials or {},
    )


def _mock_client(
    source: str,
    handler: Callable[[httpx.Request], httpx.Response],
    follow_redirects: bool = False,
) -> ExternalHTTPClient:
    return ExternalHTTPClient(
        source,
        timeout_s=5.0,
        follow_redirects=follow_redirects,
        transport=httpx.MockTransport(handler),
    )


LANDING_HTML = """
<html><head><title>Halal</title></head>
<body>
  <form action="/search" method="post">
    <input type="hidden" name="__RequestVerificationToken" value="tok-123" />
  </form>
</body></html>
"""


@pytest.fixture
def landing_html() -> str:
    return LANDING_HTML


@pytest.fixture
def entity_factory() -> Callable[..., Entity]:
    return _make_entity


@pytest.fixture
def store_factory() -> type[FakeCatalogStore]:
    return FakeCatalogStore


@pytest.fixture
def client_factory() -> Callable[..., ExternalHTTPClient]:
    """ExternalHTTPClient over httpx.MockTransport; use the result with ``async with``."""
    return _mock_client
