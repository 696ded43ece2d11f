"""Shared fixtures and test doubles."""

from __future__ import annotations

import json
import random
from typing import Any, Callable, Sequence

import httpx
import pytest
from starlette.websockets import WebSocketState

from ecomarine.core.ingestion import IngestionCycle
from ecomarine.domain.location import COASTAL_LOCATIONS, CoastalLocation
from ecomarine.services.classifier import ClassifierClient
from ecomarine.services.connection_manager import ConnectionRegistry
from ecomarine.services.imagery import ImageryResolver
from ecomarine.store.memory import InMemoryMonitoringStore

CLASSIFIER_URL = "http://classifier.test"


class FakeWebSocket:
    """Records what the registry sends; no network involved."""

    def __init__(self, state: WebSocketState = WebSocketState.CONNECTING) -> None:
        self.client_state = state
        self.sent: list[str] = []
        self.fail_sends = False

    async def accept(self) -> None:
        self.client_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise RuntimeError("socket broken")
        self.sent.append(data)

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(m) for m in self.sent]


def json_classifier(
    respond: Callable[[dict[str, Any], int], httpx.Response],
) -> tuple[httpx.MockTransport, list[dict[str, Any]]]:
    """MockTransport for the JSON /analyze endpoint.

    *respond* gets the decoded request body and the 1-based call number.
    Returns the transport and the list of request bodies it received.
    """
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return respond(body, len(seen))

    return httpx.MockTransport(handler), seen


def fixed_answer(payload: dict[str, Any]) -> Callable[[dict[str, Any], int], httpx.Response]:
    return lambda body, call: httpx.Response(200, json=payload)


def make_cycle(
    store: Any,
    transport: httpx.MockTransport,
    *,
    connections: ConnectionRegistry | None = None,
    catalog: Sequence[CoastalLocation] = COASTAL_LOCATIONS,
    batch_size: int = 3,
    work_source: str = "catalog",
    mode: str = "json",
    imagery_transport: httpx.MockTransport | None = None,
    seed: int = 7,
) -> IngestionCycle:
    imagery = ImageryResolver(httpx.AsyncClient(transport=imagery_transport))
    classifier = ClassifierClient(
        httpx.AsyncClient(base_url=CLASSIFIER_URL, transport=transport),
        imagery,
        mode=mode,
    )
    return IngestionCycle(
        store,
        classifier,
        imagery,
        connections or ConnectionRegistry(),
        batch_size=batch_size,
        work_source=work_source,
        catalog=catalog,
        rng=random.Random(seed),
    )


@pytest.fixture
def store() -> InMemoryMonitoringStore:
    return InMemoryMonitoringStore(rng=random.Random(3))
