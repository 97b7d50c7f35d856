"""
Framework route conventions.

Each convention is a strategy function mapping a project-relative file path to a
route path, or None when the file is not a routable page under that convention.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from .route_types import Framework, RouteConvention

ROUTE_FILE_EXTENSIONS = ("tsx", "ts", "jsx", "js")

_EXTENSION_RE = re.compile(r"\.(tsx?|jsx?)$")

# Next.js pages-router files that never render a page
PAGES_SPECIAL_FILES = {"_app", "_document", "_error"}


def _with_extensions(prefix: str, convention: RouteConvention) -> List[Tuple[str, RouteConvention]]:
    return [(f"{prefix}.{ext}", convention) for ext in ROUTE_FILE_EXTENSIONS]


FRAMEWORK_ROUTE_PATTERNS: Dict[Framework, List[Tuple[str, RouteConvention]]] = {
    Framework.NEXTJS: (
        _with_extensions("app/**/page", RouteConvention.APP_ROUTER)
        + _with_extensions("src/app/**/page", RouteConvention.APP_ROUTER)
        + _with_extensions("pages/**/*", RouteConvention.PAGES)
        + _with_extensions("src/pages/**/*", RouteConvention.PAGES)
    ),
    Framework.REMIX: _with_extensions("app/routes/**/*", RouteConvention.ROUTE_MODULE),
    Framework.REACT: (
        _with_extensions("src/pages/**/*", RouteConvention.GENERIC)
        + _with_extensions("src/routes/**/*", RouteConvention.GENERIC)
        + _with_extensions("pages/**/*", RouteConvention.GENERIC)
        + [("src/**/*.tsx", RouteConvention.GENERIC)]
    ),
    Framework.GENERIC: (
        _with_extensions("pages/**/*", RouteConvention.GENERIC)
        + _with_extensions("routes/**/*", RouteConvention.GENERIC)
        + _with_extensions("src/pages/**/*", RouteConvention.GENERIC)
        + _with_extensions("src/routes/**/*", RouteConvention.GENERIC)
    ),
}


def _join_segments(segments: List[str]) -> str:
    segments = [s for s in segments if s]
    return "/" + "/".join(segments) if segments else "/"


def _strip_prefix(parts: List[str], *prefixes: str) -> List[str]:
    """Drop leading path parts matching the given prefixes, in order, when present."""
    for prefix in prefixes:
        prefix_parts = prefix.split("/")
        if parts[: len(prefix_parts)] == prefix_parts:
            parts = parts[len(prefix_parts) :]
    return parts


def app_router_path(relative_path: str) -> Optional[str]:
    """app/(shop)/checkout/page.tsx -> /checkout"""
    parts = _strip_prefix(relative_path.split("/"), "src", "app")
    folders = parts[:-1]
    # Private folders opt out of routing
    if any(folder.startswith("_") for folder in folders):
        return None
    segments = [
        folder
        for folder in folders
        if not (folder.startswith("(") and folder.endswith(")")) and not folder.startswith("@")
    ]
    if segments and segments[-1] == "index":
        segments = segments[:-1]
    return _join_segments(segments)


def pages_path(relative_path: str) -> Optional[str]:
    """pages/blog/index.tsx -> /blog, pages/index.tsx -> /"""
    parts = _strip_prefix(relative_path.split("/"), "src", "pages")
    if not parts:
        return None
    stem = _EXTENSION_RE.sub("", parts[-1])
    if stem in PAGES_SPECIAL_FILES:
        return None
    segments = parts[:-1] + [stem]
    if segments[-1] == "index":
        segments = segments[:-1]
    return _join_segments(segments)


def route_module_path(relative_path: str) -> Optional[str]:
    """app/routes/users.$id.tsx -> /users/:id, app/routes/_index.tsx -> /"""
    parts = _strip_prefix(relative_path.split("/"), "app", "routes")
    if not parts:
        return None
    body = _EXTENSION_RE.sub("", "/".join(parts))
    raw_segments = re.split(r"[./]", body)
    if len(raw_segments) > 1 and raw_segments[-1] == "route":
        raw_segments = raw_segments[:-1]

    segments: List[str] = []
    for segment in raw_segments:
        if segment in ("index", "_index") or segment.startswith("_"):
            continue
        if segment.endswith("_"):
            segment = segment[:-1]
        if segment == "$":
            segment = "*"
        elif segment.startswith("$"):
            segment = ":" + segment[1:]
        segments.append(segment)
    return _join_segments(segments)


def generic_path(relative_path: str) -> Optional[str]:
    """src/pages/settings.tsx -> /settings"""
    parts = _strip_prefix(relative_path.split("/"), "src")
    for prefix in (["app", "routes"], ["pages"], ["routes"]):
        if parts[: len(prefix)] == prefix:
            parts = parts[len(prefix) :]
            break
    if not parts:
        return None
    segments = parts[:-1] + [_EXTENSION_RE.sub("", parts[-1])]
    if segments[-1] == "index":
        segments = segments[:-1]
    return _join_segments(segments)


ROUTE_PATH_STRATEGIES: Dict[RouteConvention, Callable[[str], Optional[str]]] = {
    RouteConvention.APP_ROUTER: app_router_path,
    RouteConvention.PAGES: pages_path,
    RouteConvention.ROUTE_MODULE: route_module_path,
    RouteConvention.GENERIC: generic_path,
}


def map_file_to_route(relative_path: str, convention: RouteConvention) -> Optional[str]:
    return ROUTE_PATH_STRATEGIES[convention](relative_path)
