"""Lookup of broker clients by broker."""

from typing import Iterable, Optional

from portsync.brokers.base import BrokerClient
from portsync.core.exceptions import UnsupportedBrokerError
from portsync.domain.models import Broker


class BrokerClientRegistry:
    """Maps each supported broker to the client that talks to it."""

    def __init__(self, clients: Optional[Iterable[BrokerClient]] = None):
        self._clients: dict[Broker, BrokerClient] = {}
        for client in clients or ():
            self.register(client)

    def register(self, client: BrokerClient) -> None:
        """Register (or replace) the client for ``client.broker``."""
        self._clients[Broker(client.broker)] = client

    def get(self, broker: Optional[Broker]) -> BrokerClient:
        """Return the client for a broker or raise UnsupportedBrokerError."""
        client = self._clients.get(broker) if broker is not None else None
        if client is None:
            raise UnsupportedBrokerError(broker)
        return client

    def supported(self) -> list[Broker]:
        return sorted(self._clients, key=lambda b: b.value)
