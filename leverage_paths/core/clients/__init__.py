from leverage_paths.core.clients.ChainClient import ChainClient, SimulationResult
from leverage_paths.core.clients.HttpClient import HttpClient
from leverage_paths.core.clients.PositionsClient import (
    POSITIONS_CLIENT,
    PositionsClient,
)
from leverage_paths.core.clients.protocols import (
    ChainClientProtocol,
    RegistryClientProtocol,
    RoutingClientProtocol,
)
from leverage_paths.core.clients.RegistryClient import (
    REGISTRY_CLIENT,
    ContractRecord,
    RegistryClient,
)
from leverage_paths.core.clients.RoutingClient import ROUTING_CLIENT, RoutingClient

__all__ = [
    "ChainClient",
    "ChainClientProtocol",
    "ContractRecord",
    "HttpClient",
    "POSITIONS_CLIENT",
    "PositionsClient",
    "REGISTRY_CLIENT",
    "RegistryClient",
    "RegistryClientProtocol",
    "ROUTING_CLIENT",
    "RoutingClient",
    "RoutingClientProtocol",
    "SimulationResult",
]
