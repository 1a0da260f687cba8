"""
Models for overall project configuration.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel

from ..errors import UnknownReferenceError
from .container_definition import ContainerDefinition

DEFAULT_GROUP = "default"


class ProjectConfig(BaseModel):
    """
    Complete configuration for a multi-container project.
    Equivalent to a parsed crane.yml or docker-compose.yml file.
    """
    containers: Dict[str, ContainerDefinition] = {}
    groups: Dict[str, List[str]] = {}
    networks: List[str] = []
    volumes: List[str] = []
    prefix: str = ""
    path: Optional[str] = None

    def container_names(self) -> List[str]:
        return list(self.containers.keys())

    def has_container(self, name: str) -> bool:
        return name in self.containers

    def containers_for_reference(self, reference: str) -> List[str]:
        """
        Determines which containers a reference stands for.

        An empty reference selects the ``default`` group if one is configured,
        else every container. Otherwise the reference is looked up as a group
        first and as a container second.

        :param reference: Group name, container name or empty string.
        :return: Container names, without duplicates, in declaration order.
        :raises UnknownReferenceError: If nothing matches, or a group lists an
            undeclared container.
        """
        if not reference:
            if DEFAULT_GROUP in self.groups:
                names = self.groups[DEFAULT_GROUP]
            else:
                names = self.container_names()
        elif reference in self.groups:
            names = self.groups[reference]
        elif reference in self.containers:
            names = [reference]
        else:
            raise UnknownReferenceError(reference)

        result = []
        for name in names:
            if name not in self.containers:
                raise UnknownReferenceError(name, f"Invalid container reference `{name}`")
            if name not in result:
                result.append(name)
        return result
