"""
Build data models.

This module contains the job definition handed over by the pipeline loader,
the endpoint configuration, the options accepted by the launcher and the
immutable build entry that is serialized into the job container.
"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Environment variables handed to the build container
EnvVar = Dict[str, str]
# Free-form build metadata
Meta = Dict[str, Any]


@dataclass(frozen=True)
class Step:
    """A single named command executed inside the job container."""

    name: str
    command: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "command": self.command}


@dataclass
class Job:
    """
    A job as declared in the pipeline definition.
    """

    image: str
    steps: List[Step] = field(default_factory=list)
    environment: EnvVar = field(default_factory=dict)


@dataclass
class LauncherImage:
    """Setup image used to populate the shared volumes."""

    image: str = "screwdrivercd/launcher"
    version: str = "stable"


@dataclass
class EndpointConfig:
    """
    Endpoints of the CI/CD API and store services.

    Base URLs are given without a version path; the assembler appends it.
    """

    api_url: str
    store_url: str
    token: str = ""
    launcher: LauncherImage = field(default_factory=LauncherImage)


@dataclass
class LaunchOption:
    """
    Everything the launcher needs to run one job locally.
    """

    job: Job
    entry: EndpointConfig
    job_name: str
    jwt: str = ""
    artifacts_path: str = ""
    memory: str = ""
    src_path: str = ""
    option_env: EnvVar = field(default_factory=dict)
    meta: Meta = field(default_factory=dict)
    use_sudo: bool = False
    use_privileged: bool = False
    flag_verbose: bool = False


def _sorted_mapping(value: Any) -> Any:
    """Recursively copy mappings with their keys sorted."""
    if isinstance(value, Mapping):
        return {str(k): _sorted_mapping(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [_sorted_mapping(v) for v in value]
    return value


@dataclass(frozen=True)
class BuildEntry:
    """
    Immutable description of one local build.

    The first group of fields is serialized and handed to the entry script
    of the job container; the remaining fields only matter on the host and
    are never serialized.
    """

    id: int
    environment: Tuple[Mapping[str, str], ...]
    event_id: int
    job_id: int
    parent_build_id: Tuple[int, ...]
    sha: str
    meta: Mapping[str, Any]
    steps: Tuple[Step, ...]

    # Host-only fields
    image: str
    job_name: str
    artifacts_path: str
    memory_limit: Optional[str]
    src_path: str
    use_sudo: bool
    use_privileged: bool

    @classmethod
    def create(cls, *, environment: EnvVar, meta: Optional[Meta],
               steps: List[Step], **fields: Any) -> "BuildEntry":
        """Build an entry, freezing the mutable collections it receives."""
        return cls(
            environment=(MappingProxyType(dict(environment)),),
            meta=MappingProxyType(dict(meta or {})),
            steps=tuple(steps or ()),
            **fields,
        )

    @property
    def env(self) -> Mapping[str, str]:
        """The merged environment of the build."""
        return self.environment[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "environment": [_sorted_mapping(env) for env in self.environment],
            "eventId": self.event_id,
            "jobId": self.job_id,
            "parentBuildId": list(self.parent_build_id),
            "sha": self.sha,
            "meta": _sorted_mapping(self.meta),
            "steps": [step.to_dict() for step in self.steps],
        }

    def to_json(self) -> str:
        """Serialize the container-facing fields as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
