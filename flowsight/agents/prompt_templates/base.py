"""
Versioned prompt templates for the synthesis stages.

Input prompts use ``str.format`` placeholders, so literal braces in a template must be
doubled. Values substituted into a prompt (code context included) are never re-formatted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptTemplate:
    """A system prompt plus an input prompt whose placeholders are the declared variables."""

    name: str
    description: str
    system_prompt: str
    input_prompt: str
    variables: List[str] = field(default_factory=list)
    version: str = "1"

    @property
    def identifier(self) -> str:
        return f"{self.name}@v{self.version}"

    def missing_variables(self, **kwargs: Any) -> List[str]:
        return [name for name in self.variables if name not in kwargs]

    def get_prompts(self, **kwargs: Any) -> Tuple[str, str]:
        """
        Render the template.

        Returns:
            (system prompt, formatted input prompt)

        Raises:
            ValueError: If a declared variable is not supplied
        """
        missing = self.missing_variables(**kwargs)
        if missing:
            logger.error(f"Template {self.identifier} is missing variables: {missing}")
            raise ValueError(f"Missing variables for prompt template {self.identifier}: {', '.join(missing)}")
        return self.system_prompt, self.input_prompt.format(**kwargs)
