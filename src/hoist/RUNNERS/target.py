# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Resolution of a user supplied reference into the containers a command targets.
"""
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from ..errors import InvalidTargetError
from ..MODELS.dependencies import KindSelector
from ..MODELS.project_config import ProjectConfig
from .dependency_graph import DependencyGraph

DEPENDENCIES_EXTENSIONS = ("dependencies", "d")
AFFECTED_EXTENSIONS = ("affected", "a")


class ResolutionOptions(BaseModel):
    """
    Options controlling how a reference is turned into a target.
    """
    model_config = ConfigDict(frozen=True)

    # Containers a command may touch at all; None allows every container
    allowed: Optional[Tuple[str, ...]] = None
    # Follow dependencies of the explicit containers
    cascade_dependencies: KindSelector = KindSelector.NONE
    # Follow containers depending on the explicit containers
    cascade_affected: KindSelector = KindSelector.NONE
    # Only containers for which this returns True are cascaded to as affected
    exists: Optional[Callable[[str], bool]] = None

    def is_allowed(self, name: str) -> bool:
        return self.allowed is None or name in self.allowed


@dataclass
class Target:
    """
    Containers targeted by a command.

    ``initial`` holds the explicitly referenced containers, ``dependencies``
    and ``affected`` those pulled in by cascading forward and backward.
    """
    initial: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    affected: List[str] = field(default_factory=list)

    def all(self) -> List[str]:
        """Returns all targeted containers, deduplicated and sorted alphabetically."""
        return sorted(set(self.initial) | set(self.dependencies) | set(self.affected))

    def includes(self, name: str) -> bool:
        return name in self.all()


def parse_reference(reference: str) -> Tuple[str, bool, bool]:
    """
    Splits a reference like ``web+dependencies+affected`` into its name and
    the requested extensions.

    :return: Tuple of name, extend to dependencies, extend to affected.
    :raises InvalidTargetError: On an unknown extension.
    """
    parts = (reference or "").split('+')
    extend_dependencies = False
    extend_affected = False
    for extension in parts[1:]:
        if extension in DEPENDENCIES_EXTENSIONS:
            extend_dependencies = True
        elif extension in AFFECTED_EXTENSIONS:
            extend_affected = True
        else:
            raise InvalidTargetError(
                f"Unknown target extension {extension}. "
                "Available options are 'dependencies'/'d' and 'affected'/'a'"
            )
    return parts[0], extend_dependencies, extend_affected


def allowed_containers(config: ProjectConfig, excluded: Iterable[str] = (), only: str = "") -> List[str]:
    """
    Derives the allow-list from --only and --exclude style references.

    :param config: The project configuration.
    :param excluded: References (groups or containers) to exclude.
    :param only: Reference to restrict the scope to.
    :return: Names of the containers commands may touch.
    """
    if only:
        candidates = config.containers_for_reference(only)
    else:
        candidates = config.container_names()
    excluded_names = set()
    for reference in excluded:
        excluded_names.update(config.containers_for_reference(reference))
    return [name for name in candidates if name not in excluded_names]


class TargetResolver:
    """
    Resolves references into targets against one project configuration.
    """
    def __init__(self, config: ProjectConfig, graph: DependencyGraph,
                 options: Optional[ResolutionOptions] = None):
        """
        :param config: The project configuration (for groups and declared containers).
        :param graph: The dependency graph to cascade along.
        :param options: Allow-list and cascade controls.
        """
        self.config = config
        self.graph = graph
        self.options = options or ResolutionOptions()

    def resolve(self, reference: str = "") -> Target:
        """
        Resolves a reference into a target.

        :param reference: Container or group name, optionally suffixed with
            ``+dependencies``/``+affected``; empty for the default.
        :return: The resolved target.
        :raises UnknownReferenceError: If the reference matches nothing.
        :raises InvalidTargetError: If the reference has an unknown extension.
        """
        name, extend_dependencies, extend_affected = parse_reference(reference)

        cascade_dependencies = KindSelector(self.options.cascade_dependencies)
        if extend_dependencies and cascade_dependencies is KindSelector.NONE:
            cascade_dependencies = KindSelector.ALL
        cascade_affected = KindSelector(self.options.cascade_affected)
        if extend_affected and cascade_affected is KindSelector.NONE:
            cascade_affected = KindSelector.ALL

        target = Target()
        for container in self.config.containers_for_reference(name):
            if self.options.is_allowed(container):
                target.initial.append(container)

        if cascade_dependencies is not KindSelector.NONE:
            found = self._cascade(target.initial, cascade_dependencies, self._forward)
            target.dependencies = sorted(n for n in found if n not in target.initial)

        if cascade_affected is not KindSelector.NONE:
            found = self._cascade(target.initial, cascade_affected, self._backward)
            target.affected = sorted(n for n in found if n not in target.initial)

        return target

    def _forward(self, seed: str, kind: KindSelector) -> List[str]:
        dependencies = self.graph.get(seed)
        return dependencies.for_kind(kind) if dependencies else []

    def _backward(self, seed: str, kind: KindSelector) -> List[str]:
        exists = self.options.exists
        return [name for name in self.graph.dependents_of(seed, kind)
                if exists is None or exists(name)]

    def _cascade(self, seeds: List[str], kind: KindSelector,
                 step: Callable[[str, KindSelector], List[str]]) -> List[str]:
        """
        Walks from ``seeds`` wave by wave until no new container is found.

        :return: Declared, allowed containers reached, including the seeds.
        """
        seen = set(seeds)
        reached = list(seeds)
        wave = list(seeds)
        while wave:
            next_wave = []
            for seed in wave:
                for name in step(seed, kind):
                    if name in seen:
                        continue
                    seen.add(name)
                    if self.config.has_container(name) and self.options.is_allowed(name):
                        reached.append(name)
                        next_wave.append(name)
            wave = next_wave
        return reached
