"""
Models describing which containers a single container depends on, and how.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class DependencyKind(str, Enum):
    """
    Structural relationship between two containers.
    """
    LINK = "link"
    NET = "net"
    VOLUMES_FROM = "volumesFrom"

    @property
    def requires_running(self) -> bool:
        """Whether the depended-upon container has to be running, not just exist."""
        return self is not DependencyKind.VOLUMES_FROM


class KindSelector(str, Enum):
    """
    Selects a subset of a container's dependencies, either by kind or as a whole.
    """
    NONE = "none"
    ALL = "all"
    REQUIRED = "required"
    LINK = "link"
    NET = "net"
    VOLUMES_FROM = "volumesFrom"

    @classmethod
    def parse(cls, value: Union[str, "KindSelector", DependencyKind, None]) -> Optional["KindSelector"]:
        """
        Converts a kind, selector or plain string into a selector.

        :return: The selector, or None if the value is not recognised.
        """
        if value is None:
            return None
        if isinstance(value, Enum):
            value = value.value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class Dependencies:
    """
    Dependencies of one container.

    ``all`` lists every related container once. ``required`` lists the
    containers that have to be resolved before this one can be ordered; it
    shrinks through ``remove`` while the per-kind lists keep describing the
    structural relationship.
    """
    all: List[str] = field(default_factory=list)
    required: List[str] = field(default_factory=list)
    link: List[str] = field(default_factory=list)
    volumes_from: List[str] = field(default_factory=list)
    net: Optional[str] = None

    def add(self, name: str, kind: DependencyKind, required: bool = True):
        """
        Registers a relationship. Repeated calls with the same name and kind
        do not create duplicate entries.

        :param name: Name of the depended-upon container.
        :param kind: Kind of relationship.
        :param required: Whether the container must be resolved before ordering this one.
        """
        kind = DependencyKind(kind)
        if name not in self.all:
            self.all.append(name)
        if required and name not in self.required:
            self.required.append(name)
        if kind is DependencyKind.LINK:
            if name not in self.link:
                self.link.append(name)
        elif kind is DependencyKind.VOLUMES_FROM:
            if name not in self.volumes_from:
                self.volumes_from.append(name)
        elif kind is DependencyKind.NET:
            self.net = name

    def includes(self, name: str) -> bool:
        return name in self.all

    def includes_as_kind(self, name: str, kind: Union[str, KindSelector, DependencyKind]) -> bool:
        return name in self.for_kind(kind)

    def for_kind(self, kind: Union[str, KindSelector, DependencyKind]) -> List[str]:
        """
        Returns the dependencies selected by ``kind``.

        Unrecognised selectors select nothing.
        """
        selector = KindSelector.parse(kind)
        if selector is None or selector is KindSelector.NONE:
            return []
        if selector is KindSelector.ALL:
            return list(self.all)
        if selector is KindSelector.REQUIRED:
            return list(self.required)
        if selector is KindSelector.LINK:
            return list(self.link)
        if selector is KindSelector.VOLUMES_FROM:
            return list(self.volumes_from)
        if selector is KindSelector.NET:
            return [self.net] if self.net else []
        raise AssertionError(f"Unhandled kind selector {selector!r}")

    def kinds_of(self, name: str) -> List[DependencyKind]:
        """Returns every kind of relationship held with ``name``."""
        return [kind for kind in DependencyKind if self.includes_as_kind(name, kind)]

    def must_run(self, name: str) -> bool:
        """Whether ``name`` has to be running for this container to work."""
        return name == self.net or name in self.link

    def satisfied(self) -> bool:
        return len(self.required) == 0

    def remove(self, name: str):
        """
        Strikes ``name`` from the required dependencies.
        """
        self.required = [n for n in self.required if n != name]

    def copy(self) -> "Dependencies":
        return Dependencies(
            all=list(self.all),
            required=list(self.required),
            link=list(self.link),
            volumes_from=list(self.volumes_from),
            net=self.net,
        )
