"""Route inventory types produced by route discovery."""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class RouteConvention(str, Enum):
    """How a file path maps onto a route path."""

    APP_ROUTER = "app-router"
    PAGES = "pages"
    ROUTE_MODULE = "route-module"
    GENERIC = "generic"


class Framework(str, Enum):
    NEXTJS = "nextjs"
    REMIX = "remix"
    REACT = "react"
    GENERIC = "generic"

    @classmethod
    def parse(cls, value: Union[str, "Framework"]) -> "Framework":
        """Resolve a framework name or alias, falling back to GENERIC."""
        if isinstance(value, Framework):
            return value
        normalized = value.strip().lower().replace(".", "").replace(" ", "")
        aliases = {
            "next": cls.NEXTJS,
            "nextjs": cls.NEXTJS,
            "remix": cls.REMIX,
            "react": cls.REACT,
            "reactrouter": cls.REACT,
            "generic": cls.GENERIC,
        }
        framework = aliases.get(normalized)
        if framework is None:
            logger.warning(f"Unknown framework '{value}', using generic route conventions")
            return cls.GENERIC
        return framework


@dataclass(frozen=True)
class Route:
    """A discovered page path and the source file defining it (relative to the project root)."""

    path: str
    file_path: str


@dataclass(frozen=True)
class NavigationEdge:
    from_path: str
    to_path: str

    def __str__(self) -> str:
        return f"{self.from_path} -> {self.to_path}"


@dataclass
class RouteGraph:
    routes: List[Route] = field(default_factory=list)
    navigation_graph: List[NavigationEdge] = field(default_factory=list)

    def file_for(self, path: str) -> Optional[str]:
        """Source file of the route with the given path, if discovered."""
        return self.route_file_map().get(path)

    def route_file_map(self) -> Dict[str, str]:
        return {route.path: route.file_path for route in self.routes}
