"""
Models for defining containers and the relationships they declare.
"""
from typing import Dict, Iterable, List, Optional
from pydantic import BaseModel

from .dependencies import Dependencies, DependencyKind

DEFAULT_NETWORK_MODE = "bridge"


def container_reference(reference: Optional[str]) -> Optional[str]:
    """
    Extracts the container name from a ``container:<name>`` (or
    ``service:<name>``) network reference.

    :return: The container name, or None if the reference names a network.
    """
    if not reference:
        return None
    parts = reference.split(':')
    if len(parts) == 2 and parts[0] in ("container", "service") and parts[1]:
        return parts[1]
    return None


class BuildSpec(BaseModel):
    """
    Where to build the image of a container from.
    """
    context: Optional[str] = None
    dockerfile: Optional[str] = None


class ContainerDefinition(BaseModel):
    """
    The definition of a single container as declared in the config file.

    Only ``net``, ``links`` and ``volumes_from`` matter for planning; the
    remaining fields are carried for the driver that executes the plan.
    """
    name: str
    image: Optional[str] = None
    build: Optional[BuildSpec] = None

    # Execution
    command: List[str] = []
    env: Dict[str, str] = {}

    # Relationships, raw as declared ("name:alias", "name:ro", "container:name")
    links: List[str] = []
    volumes_from: List[str] = []
    net: Optional[str] = None

    # Storage, raw "source:target[:mode]"
    volumes: List[str] = []

    def network_mode(self) -> str:
        return self.net or DEFAULT_NETWORK_MODE

    def link_names(self) -> List[str]:
        return [link.split(':')[0] for link in self.links if link]

    def volumes_from_names(self) -> List[str]:
        return [source.split(':')[0] for source in self.volumes_from if source]

    def net_container(self, declared: Optional[Iterable[str]] = None) -> Optional[str]:
        """
        Name of the container whose network stack is shared, if any.

        :param declared: Declared container names; a bare ``net`` value
            naming one of them refers to that container.
        """
        reference = container_reference(self.net)
        if reference is None and declared is not None and self.net in declared:
            return self.net
        return reference

    def volume_sources(self) -> List[str]:
        return [volume.split(':')[0] for volume in self.volumes if volume]

    def dependencies(self, allowed: Optional[List[str]] = None,
                     declared: Optional[Iterable[str]] = None) -> Dependencies:
        """
        Computes the dependencies this container declares.

        Links are only dependencies on the default bridge network. Names not
        in ``allowed`` are skipped when an allow-list is given.

        :param allowed: Optional allow-list of container names.
        :param declared: Declared container names, used to resolve a bare ``net`` value.
        :return: The container's dependencies.
        """
        dependencies = Dependencies()

        def permitted(name: str) -> bool:
            return allowed is None or name in allowed

        if self.network_mode() == DEFAULT_NETWORK_MODE:
            for name in self.link_names():
                if permitted(name):
                    dependencies.add(name, DependencyKind.LINK)
        for name in self.volumes_from_names():
            if permitted(name):
                dependencies.add(name, DependencyKind.VOLUMES_FROM)
        net = self.net_container(declared)
        if net and permitted(net):
            dependencies.add(net, DependencyKind.NET)
        return dependencies
