"""Broker client interfaces."""

from portsync.brokers.base import BrokerClient, RawPosition, RawHolding
from portsync.brokers.registry import BrokerClientRegistry

__all__ = [
    "BrokerClient",
    "RawPosition",
    "RawHolding",
    "BrokerClientRegistry",
]
