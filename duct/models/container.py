"""Container specification models."""

import ipaddress
import shlex
import warnings
from datetime import timedelta
from typing import Any, Callable, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

# Called with (context, container_id); raises to signal the container is not usable.
ReadinessCheck = Callable[[Any, str], None]


def _argv(value: Any) -> Any:
    if isinstance(value, str):
        return shlex.split(value)
    return value


class ContainerSpec(BaseModel):
    """Declaration of a single container in a manifest.

    The name maps directly to the engine's container name and doubles as the
    hostname and network alias, so be mindful of collisions with containers
    started elsewhere.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Container name, hostname and network alias")
    image: str = Field(..., min_length=1, description="Image in repository syntax")
    env: List[str] = Field(default_factory=list, description="KEY=value environment strings")
    command: Optional[List[str]] = None
    entrypoint: Optional[List[str]] = None
    local_image: bool = Field(False, description="Skip pulling the image")
    bind_mounts: Dict[str, str] = Field(default_factory=dict, description="Host path to container path")
    boot_wait: float = Field(0.0, ge=0, description="Seconds to sleep after start")
    readiness_check: Optional[ReadinessCheck] = Field(None, exclude=True)
    post_commands: List[List[str]] = Field(default_factory=list)
    port_forwards: Dict[int, int] = Field(default_factory=dict, description="Host port to container port")
    extra_hosts: Dict[str, str] = Field(default_factory=dict, description="Hostname to IP entries")
    ipv4_address: Optional[str] = None
    wait_for_exit: bool = Field(False, description="Block until the container exits successfully")

    @field_validator("env", mode="before")
    @classmethod
    def _env_from_mapping(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return [f"{key}={val}" for key, val in value.items()]
        return value

    @field_validator("env")
    @classmethod
    def _env_has_keys(cls, value: List[str]) -> List[str]:
        for entry in value:
            if "=" not in entry or entry.startswith("="):
                raise ValueError(f"environment entry {entry!r} is not in KEY=value form")
        return value

    @field_validator("command", "entrypoint", mode="before")
    @classmethod
    def _split_command(cls, value: Any) -> Any:
        return _argv(value)

    @field_validator("post_commands", mode="before")
    @classmethod
    def _split_post_commands(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_argv(item) for item in value]
        return value

    @field_validator("post_commands")
    @classmethod
    def _post_commands_not_empty(cls, value: List[List[str]]) -> List[List[str]]:
        if any(not command for command in value):
            raise ValueError("post commands must not be empty")
        return value

    @field_validator("boot_wait", mode="before")
    @classmethod
    def _boot_wait_seconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    @field_validator("port_forwards")
    @classmethod
    def _valid_ports(cls, value: Dict[int, int]) -> Dict[int, int]:
        for host_port, container_port in value.items():
            for port in (host_port, container_port):
                if not 0 < port < 65536:
                    raise ValueError(f"port {port} is out of range")
        return value

    @field_validator("ipv4_address")
    @classmethod
    def _valid_address(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            ipaddress.IPv4Address(value)
        return value

    @field_validator("extra_hosts")
    @classmethod
    def _valid_host_entries(cls, value: Dict[str, str]) -> Dict[str, str]:
        for address in value.values():
            ipaddress.ip_address(address)
        return value


class Manifest(RootModel[List[ContainerSpec]]):
    """Ordered list of containers to launch together."""

    root: List[ContainerSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> "Manifest":
        seen = set()
        for spec in self.root:
            if spec.name in seen:
                raise ValueError(f"duplicate container name in manifest: {spec.name!r}")
            seen.add(spec.name)
        return self

    def __iter__(self) -> Iterator[ContainerSpec]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> ContainerSpec:
        return self.root[index]

    def names(self) -> List[str]:
        return [spec.name for spec in self.root]

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "Manifest":
        """Build a manifest from the deprecated name-keyed form.

        Entries keep the mapping's insertion order; each key becomes the
        container name unless the entry already names itself identically.
        """
        warnings.warn(
            "name-keyed manifests are deprecated; use an ordered list of containers",
            DeprecationWarning,
            stacklevel=2,
        )
        specs = []
        for name, entry in mapping.items():
            if isinstance(entry, ContainerSpec):
                data = entry.model_dump()
                data["readiness_check"] = entry.readiness_check
            else:
                data = dict(entry)
            if data.get("name", name) != name:
                raise ValueError(f"manifest key {name!r} does not match container name {data['name']!r}")
            data["name"] = name
            specs.append(data)
        return cls.model_validate(specs)
