"""
Route graph discovery.

Scans a project tree for page files under a framework's conventions and derives
a navigation graph from links and navigation calls in those files. No code is
executed and no external calls are made.
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from flowsight.exceptions import NoRoutesFoundError

from .navigation_parser import extract_navigation_targets
from .route_conventions import FRAMEWORK_ROUTE_PATTERNS, map_file_to_route
from .route_types import Framework, NavigationEdge, Route, RouteConvention, RouteGraph

logger = logging.getLogger(__name__)

MAX_ROUTE_FILE_BYTES = 1024 * 1024

EXCLUDED_DIRECTORIES = {"node_modules"}
EXCLUDED_FILE_MARKERS = (".test.", ".spec.", ".stories.", ".d.ts")


class RouteGraphDiscoverer:
    """Builds a RouteGraph for a project root under a given framework."""

    def __init__(self, max_file_bytes: int = MAX_ROUTE_FILE_BYTES):
        self.max_file_bytes = max_file_bytes

    def discover(self, project_root: Union[str, Path], framework: Union[str, Framework]) -> RouteGraph:
        """
        Discover routes and navigation edges.

        Args:
            project_root: Root of the checked-out project
            framework: Framework enum or name

        Returns:
            RouteGraph with unique route paths and deduplicated, non-self edges

        Raises:
            NoRoutesFoundError: If no page file resolves to a route under the framework's conventions
        """
        root = Path(project_root)
        framework = Framework.parse(framework)
        logger.info(f"Discovering routes in {root} using {framework.value} conventions")

        routes: List[Route] = []
        seen_paths = set()
        for relative_path, convention in self._iter_route_files(root, framework):
            route_path = map_file_to_route(relative_path, convention)
            if route_path is None or route_path in seen_paths:
                continue
            seen_paths.add(route_path)
            routes.append(Route(path=route_path, file_path=relative_path))

        if not routes:
            raise NoRoutesFoundError(str(root), framework.value)

        edges = self._build_navigation_graph(root, routes)
        logger.info(f"Discovered {len(routes)} routes and {len(edges)} navigation edges")
        return RouteGraph(routes=routes, navigation_graph=edges)

    def _iter_route_files(self, root: Path, framework: Framework) -> Iterator[Tuple[str, RouteConvention]]:
        """Yield (relative posix path, convention) for each route file, each file once."""
        seen_files = set()
        for pattern, convention in FRAMEWORK_ROUTE_PATTERNS[framework]:
            for file_path in sorted(root.glob(pattern)):
                if not file_path.is_file():
                    continue
                relative_path = file_path.relative_to(root).as_posix()
                if relative_path in seen_files or self._is_excluded(relative_path):
                    continue
                seen_files.add(relative_path)
                yield relative_path, convention

    @staticmethod
    def _is_excluded(relative_path: str) -> bool:
        parts = relative_path.split("/")
        if any(part in EXCLUDED_DIRECTORIES or part.startswith(".") for part in parts[:-1]):
            return True
        return any(marker in parts[-1] for marker in EXCLUDED_FILE_MARKERS)

    def _build_navigation_graph(self, root: Path, routes: List[Route]) -> List[NavigationEdge]:
        edges: Dict[NavigationEdge, None] = {}
        for route in routes:
            content = self._read_source(root / route.file_path)
            if content is None:
                continue
            for target in extract_navigation_targets(content):
                if target == route.path:
                    continue
                edges.setdefault(NavigationEdge(from_path=route.path, to_path=target), None)
        return list(edges)

    def _read_source(self, file_path: Path) -> Optional[str]:
        try:
            if file_path.stat().st_size > self.max_file_bytes:
                logger.debug(f"Skipping oversized file {file_path}")
                return None
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable file {file_path}: {e}")
            return None
