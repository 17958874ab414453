"""Image build models."""

from typing import Dict, Iterator, Tuple

from pydantic import BaseModel, Field, RootModel


class Build(BaseModel):
    """Instructions for building a single image."""

    dockerfile: str = Field(..., min_length=1, description="Dockerfile path relative to the context")
    context: str = Field(".", description="Build context directory")


class BuildSet(RootModel[Dict[str, Build]]):
    """Image name to build instructions."""

    root: Dict[str, Build] = Field(default_factory=dict)

    def items(self) -> Iterator[Tuple[str, Build]]:
        return iter(self.root.items())

    def __len__(self) -> int:
        return len(self.root)
