"""Persona DTOs."""

from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field


class PersonaSource(str, Enum):
    AUTO_GENERATED = "auto_generated"
    USER_DECLARED = "user_declared"


class PersonaCreateDto(BaseModel):
    """Fields needed to create a persona."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    behaviors: List[str] = Field(default_factory=list)
    source: PersonaSource = PersonaSource.AUTO_GENERATED


class PersonaDto(PersonaCreateDto):
    """A persisted persona, unique by case-insensitive name within a project."""

    id: str
    project_id: str
