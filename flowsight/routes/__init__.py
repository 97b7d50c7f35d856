from .route_discovery import RouteGraphDiscoverer
from .route_types import Framework, NavigationEdge, Route, RouteConvention, RouteGraph

__all__ = [
    "RouteGraphDiscoverer",
    "Framework",
    "NavigationEdge",
    "Route",
    "RouteConvention",
    "RouteGraph",
]
