"""Text-level extraction of navigation targets from page source."""

import re
from typing import List, Optional

LINK_HREF_PATTERN = re.compile(r"""<Link\b[^>]*?\bhref=(?:"([^"]+)"|'([^']+)'|\{\s*["'`]([^"'`]+)["'`]\s*\})""")
HREF_ATTRIBUTE_PATTERN = re.compile(r"""\bhref\s*=\s*["']([^"']+)["']""")
ROUTER_PUSH_PATTERN = re.compile(r"""\b(?:\w*[Rr]outer(?:\(\))?|history)\.(?:push|replace)\s*\(\s*["'`]([^"'`]+)["'`]""")
NAVIGATE_PATTERN = re.compile(r"""\bnavigate\s*\(\s*["'`]([^"'`]+)["'`]""")
REDIRECT_PATTERN = re.compile(r"""\bredirect\s*\(\s*["'`]([^"'`]+)["'`]""")

NAVIGATION_PATTERNS = (
    LINK_HREF_PATTERN,
    HREF_ATTRIBUTE_PATTERN,
    ROUTER_PUSH_PATTERN,
    NAVIGATE_PATTERN,
    REDIRECT_PATTERN,
)

EXTERNAL_PREFIXES = ("http:", "https:", "mailto:", "tel:", "//", "javascript:")

_TEMPLATE_PLACEHOLDER = re.compile(r"\$\{[^}]*\}")


def normalize_target(raw: str) -> Optional[str]:
    """
    Reduce a navigation target to a route path.

    Query strings and hash fragments are dropped and template placeholders become
    ``:param``. Returns None for external, empty, or hash-only targets.
    """
    target = raw.strip()
    if not target or target.startswith("#") or target.lower().startswith(EXTERNAL_PREFIXES):
        return None
    target = target.split("#", 1)[0].split("?", 1)[0]
    target = _TEMPLATE_PLACEHOLDER.sub(":param", target)
    if not target:
        return None
    if not target.startswith("/"):
        target = "/" + target
    if len(target) > 1:
        target = target.rstrip("/") or "/"
    return target


def extract_navigation_targets(content: str) -> List[str]:
    """All normalized navigation targets in a source file, in order of appearance per pattern."""
    targets: List[str] = []
    for pattern in NAVIGATION_PATTERNS:
        for match in pattern.finditer(content):
            raw = next((group for group in match.groups() if group), None)
            if raw is None:
                continue
            target = normalize_target(raw)
            if target is not None:
                targets.append(target)
    return targets
