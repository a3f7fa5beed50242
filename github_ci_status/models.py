"""Value objects shared across modules."""

from dataclasses import dataclass
from typing import List, NamedTuple


@dataclass(frozen=True)
class RemoteEntry:
    """One ``remote.<name>.url`` or ``remote.<name>.pushurl`` config value."""

    name: str
    is_push: bool
    url: str

    @property
    def config_key(self) -> str:
        return f"remote.{self.name}.{'push' if self.is_push else ''}url"


@dataclass(frozen=True)
class ParsedRemoteUrl:
    """Hostname and path of a remote URL. Compared by value."""

    hostname: str
    path: str

    @property
    def path_segments(self) -> List[str]:
        return self.path.split("/")

    def __str__(self) -> str:
        return f"{self.hostname}{self.path}"


class ProjectIdentity(NamedTuple):
    owner: str
    repo: str
