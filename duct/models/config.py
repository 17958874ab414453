"""Composer configuration models."""

import ipaddress
import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateNetwork(BaseModel):
    """Create a new bridge network owned, and later removed, by the composer."""

    mode: Literal["create"] = "create"
    name: str = Field(..., min_length=1)
    subnet: Optional[str] = Field(None, description="CIDR for a single-subnet network")

    @field_validator("subnet")
    @classmethod
    def _valid_subnet(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            ipaddress.ip_network(value, strict=True)
        return value


class AttachNetwork(BaseModel):
    """Attach to an existing network by ID (not name, names are not unique).

    The network's creator owns its lifecycle; teardown leaves it in place.
    """

    mode: Literal["attach"] = "attach"
    network_id: str = Field(..., min_length=1)


NetworkMode = Annotated[Union[CreateNetwork, AttachNetwork], Field(discriminator="mode")]


class ComposerOptions(BaseModel):
    """Options for a Composer.

    ``logger`` injects a logger; otherwise ``log_stream`` routes narration to
    a private logger writing to that stream, ``quiet`` discards it, and the
    default is the ``duct.composer`` logger.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    network: Optional[NetworkMode] = None
    logger: Optional[logging.Logger] = None
    log_stream: Optional[Any] = None
    quiet: bool = False


def with_new_network(name: str, subnet: Optional[str] = None, **kwargs) -> ComposerOptions:
    """Options that create a network for use with the manifest."""
    return ComposerOptions(network=CreateNetwork(name=name, subnet=subnet), **kwargs)


def with_existing_network(network_id: str, **kwargs) -> ComposerOptions:
    """Options that reuse an existing network by ID."""
    return ComposerOptions(network=AttachNetwork(network_id=network_id), **kwargs)
