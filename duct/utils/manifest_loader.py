"""Manifest file loading utilities."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.constants import READINESS_POLL_INTERVAL
from ..core.readiness import container_running, tcp_port_open
from ..models.build import BuildSet
from ..models.config import AttachNetwork, CreateNetwork, NetworkMode
from ..models.container import Manifest
from ..services.exceptions import ConfigurationError


class NetworkSection(BaseModel):
    """``network:`` block; either ``name`` (and ``subnet``) or ``id``."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    subnet: Optional[str] = None
    id: Optional[str] = None

    @model_validator(mode="after")
    def _one_mode(self) -> "NetworkSection":
        if bool(self.name) == bool(self.id):
            raise ValueError("network needs exactly one of 'name' or 'id'")
        if self.id and self.subnet:
            raise ValueError("'subnet' only applies to a network created by name")
        return self

    def to_mode(self) -> NetworkMode:
        if self.id:
            return AttachNetwork(network_id=self.id)
        return CreateNetwork(name=self.name, subnet=self.subnet)


class ReadinessSection(BaseModel):
    """``readiness:`` block of a container entry."""

    model_config = ConfigDict(extra="forbid")

    tcp: Optional[Union[str, int]] = Field(None, description="host:port, or a port on localhost")
    running: bool = False
    interval: float = Field(READINESS_POLL_INTERVAL, gt=0)

    @model_validator(mode="after")
    def _one_check(self) -> "ReadinessSection":
        if (self.tcp is not None) == self.running:
            raise ValueError("readiness needs exactly one of 'tcp' or 'running'")
        return self

    def to_check(self):
        if self.running:
            return container_running(interval=self.interval)

        if isinstance(self.tcp, int):
            host, port = "localhost", self.tcp
        else:
            host, _, port_text = self.tcp.rpartition(":")
            if not port_text.isdigit():
                raise ValueError(f"readiness tcp target {self.tcp!r} has no port")
            host, port = host or "localhost", int(port_text)
        return tcp_port_open(host, port, interval=self.interval)


class ManifestFile(BaseModel):
    """Top-level structure of a manifest file."""

    model_config = ConfigDict(extra="forbid")

    network: Optional[NetworkSection] = None
    builds: BuildSet = Field(default_factory=BuildSet)
    containers: Union[List[Dict[str, Any]], Dict[str, Dict[str, Any]]] = Field(default_factory=list)


@dataclass
class LoadedManifest:
    """A validated manifest file."""

    path: Path
    manifest: Manifest
    network: Optional[NetworkMode]
    builds: BuildSet


class ManifestLoader:
    """Loads YAML manifest files into composer inputs.

    Example::

        network:
          name: duct-test-network
        builds:
          nc: {dockerfile: testdata/Dockerfile.nc}
        containers:
          - name: target
            image: nc
            local_image: true
            command: nc -k -l -p 6000
            port_forwards: {6000: 6000}
            readiness: {tcp: "localhost:6000"}
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> LoadedManifest:
        """Read and validate the manifest file.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML, or
                does not describe a valid manifest
        """
        if not self.path.exists():
            raise ConfigurationError(f"Manifest file not found: {self.path}")

        try:
            data = yaml.safe_load(self.path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Manifest {self.path} must be a mapping at the top level")

        try:
            document = ManifestFile.model_validate(data)
            if isinstance(document.containers, dict):
                entries = {name: self._resolve_readiness(entry) for name, entry in document.containers.items()}
                manifest = Manifest.from_mapping(entries)
            else:
                manifest = Manifest.model_validate(
                    [self._resolve_readiness(entry) for entry in document.containers]
                )
        except ValueError as e:
            raise ConfigurationError(f"Invalid manifest {self.path}: {e}") from e

        return LoadedManifest(
            path=self.path,
            manifest=manifest,
            network=document.network.to_mode() if document.network else None,
            builds=document.builds,
        )

    def _resolve_readiness(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        entry = dict(entry)
        readiness = entry.pop("readiness", None)
        if readiness is not None:
            entry["readiness_check"] = ReadinessSection.model_validate(readiness).to_check()
        return entry
