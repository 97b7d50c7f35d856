"""Input and result types of the bootstrap workflow."""

from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flowsight.routes.route_types import Framework


class BootstrapProjectInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str = Field(min_length=1)
    git_remote_url: str = Field(min_length=1)
    framework: Framework = Framework.NEXTJS
    branch: str = "main"
    credential: str = Field(description="Project API key authorizing the run")
    use_custom_personas: bool = False

    @field_validator("framework", mode="before")
    @classmethod
    def parse_framework(cls, v: Union[str, Framework]) -> Framework:
        return Framework.parse(v)


@dataclass
class BootstrapProjectResult:
    """Counts of the entities produced by one bootstrap run."""

    project_id: str
    personas_extracted: int = 0
    flows_extracted: int = 0
    steps_extracted: int = 0
