"""Bounded source-code context for step extraction prompts."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from flowsight.routes.route_types import Framework

logger = logging.getLogger(__name__)

MAX_CODE_CONTEXT_CHARS = 40_000
MAX_CONTEXT_FILES = 50
MAX_CONTEXT_FILE_BYTES = 1024 * 1024
TRUNCATION_MARKER = "\n... (truncated)"

FRAMEWORK_SOURCE_PATTERNS: Dict[Framework, List[str]] = {
    Framework.NEXTJS: [
        "app/**/*.tsx",
        "app/**/*.ts",
        "pages/**/*.tsx",
        "pages/**/*.ts",
        "components/**/*.tsx",
        "src/app/**/*.tsx",
        "src/pages/**/*.tsx",
        "src/components/**/*.tsx",
    ],
    Framework.REMIX: ["app/routes/**/*.tsx", "app/routes/**/*.ts", "app/components/**/*.tsx"],
    Framework.REACT: ["src/**/*.tsx", "src/**/*.ts", "components/**/*.tsx", "pages/**/*.tsx"],
    Framework.GENERIC: ["src/**/*.tsx", "src/**/*.ts"],
}


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class CodeContextBuilder:
    """Concatenates project files into a size-capped prompt context."""

    def __init__(
        self,
        max_chars: int = MAX_CODE_CONTEXT_CHARS,
        max_files: int = MAX_CONTEXT_FILES,
        max_file_bytes: int = MAX_CONTEXT_FILE_BYTES,
    ):
        self.max_chars = max_chars
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes

    def build(
        self,
        project_root: Union[str, Path],
        framework: Framework,
        relative_paths: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Context from the given files, or from a framework-default sample when none are readable.

        Returns an empty string when the project has no readable source at all.
        """
        root = Path(project_root)
        if relative_paths:
            context = self._concatenate(root, list(dict.fromkeys(relative_paths))[: self.max_files])
            if context:
                return truncate(context, self.max_chars)
            logger.info("Flow files unreadable, falling back to framework source sample")
        return truncate(self._concatenate(root, self.sample_files(root, framework)), self.max_chars)

    def sample_files(self, root: Path, framework: Framework) -> List[str]:
        files: List[str] = []
        for pattern in FRAMEWORK_SOURCE_PATTERNS[framework]:
            for path in sorted(root.glob(pattern)):
                relative_path = path.relative_to(root).as_posix()
                if "node_modules" in relative_path.split("/") or not path.is_file() or relative_path in files:
                    continue
                files.append(relative_path)
                if len(files) >= self.max_files:
                    return files
        return files

    def _concatenate(self, root: Path, relative_paths: List[str]) -> str:
        sections = []
        for relative_path in relative_paths:
            file_path = root / relative_path
            try:
                if file_path.stat().st_size > self.max_file_bytes:
                    continue
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping {relative_path} in code context: {e}")
                continue
            sections.append(f"// File: {relative_path}\n{content}")
        return "\n\n".join(sections)
