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
Scheduling of the containers a command has to touch.
"""
from typing import Callable, Dict, Iterable, List, Optional
from ..errors import EmptyTargetError, UnresolvedDependenciesError
from ..MODELS.command import Action, Command, PlannedStep
from ..MODELS.project_config import ProjectConfig
from .dependency_graph import DependencyGraph


class UnitOfWork:
    """
    The execution plan of one command invocation.

    ``containers`` is the transitive closure of the targeted containers,
    ``order`` one valid ordering of it (dependencies first) and ``must_run``
    the containers outside of the target that have to end up running because
    a container in the closure needs them running.
    """
    def __init__(self, targeted: List[str], containers: List[str], order: List[str],
                 must_run: List[str], requirements: Optional[Dict[str, List[str]]] = None):
        self._targeted = list(targeted)
        self._containers = list(containers)
        self.order = list(order)
        self.must_run = list(must_run)
        self._requirements = requirements or {}

    @classmethod
    def build(cls, graph: DependencyGraph, targeted: Iterable[str]) -> "UnitOfWork":
        """
        Computes the plan for the targeted containers.

        :param graph: Dependency graph of the project. It is not modified.
        :param targeted: Names of the targeted containers.
        :return: The unit of work.
        :raises EmptyTargetError: If nothing is targeted.
        :raises UnresolvedDependenciesError: If the closure cannot be ordered.
        """
        targeted = list(dict.fromkeys(targeted))
        if not targeted:
            raise EmptyTargetError()

        containers = list(targeted)
        must_run: List[str] = []
        while True:
            initial_len = len(containers)
            for name in list(containers):
                dependencies = graph.get(name)
                if dependencies is None:
                    continue
                for dependency in dependencies.all:
                    if dependency not in containers:
                        containers.append(dependency)
                    if dependencies.must_run(dependency) and dependency not in must_run:
                        must_run.append(dependency)
            if len(containers) == initial_len:
                break

        missing = [name for name in containers if name not in graph]
        try:
            order = graph.order([name for name in containers if name in graph], force_order=False)
        except UnresolvedDependenciesError as e:
            raise UnresolvedDependenciesError(set(e.unresolved) | set(missing)) from e
        if missing:
            raise UnresolvedDependenciesError(missing)

        requirements = {name: [d for d in graph[name].required if d in containers] for name in order}
        return cls(
            targeted=targeted,
            containers=containers,
            order=order,
            must_run=[name for name in must_run if name not in targeted],
            requirements=requirements,
        )

    def containers(self, reverse: bool = False) -> List[str]:
        """All containers of the closure, in order."""
        return list(reversed(self.order)) if reverse else list(self.order)

    def targeted(self, reverse: bool = False) -> List[str]:
        """The targeted containers only, in order."""
        names = [name for name in self.order if name in self._targeted]
        return list(reversed(names)) if reverse else names

    def associated(self) -> List[str]:
        """Containers pulled in without being targeted, in order."""
        return [name for name in self.order if name not in self._targeted]

    def is_targeted(self, name: str) -> bool:
        return name in self._targeted

    def requires_running(self, name: str) -> bool:
        return name in self.must_run

    def action_for(self, name: str, exists: Optional[Callable[[str], bool]] = None) -> Action:
        """
        Determines the action for a container when bringing containers up.

        :param name: Container name.
        :param exists: Optional predicate; containers that do not exist yet
            are at least started so others can use them.
        """
        if self.is_targeted(name):
            return Action.APPLY
        if self.requires_running(name):
            return Action.ENSURE_STARTED
        if exists is not None and name in self.order and not exists(name):
            return Action.ENSURE_STARTED
        return Action.NONE

    def plan(self, command: Command, exists: Optional[Callable[[str], bool]] = None) -> List[PlannedStep]:
        """
        Lays out the steps of a command.

        Commands bringing containers up walk the whole closure; every other
        command walks the targeted containers only, tear down commands in
        reverse order.
        """
        command = Command(command)
        if command.brings_up:
            return [PlannedStep(name, self.action_for(name, exists)) for name in self.containers()]
        return [PlannedStep(name, Action.APPLY) for name in self.targeted(reverse=command.reverse_order)]

    def waves(self) -> List[List[str]]:
        """
        Groups the order into waves. All dependencies of a container within
        the closure are placed in earlier waves.
        """
        level: Dict[str, int] = {}
        waves: List[List[str]] = []
        for name in self.order:
            level[name] = max((level[d] + 1 for d in self._requirements.get(name, []) if d in level),
                              default=0)
            if level[name] == len(waves):
                waves.append([])
            waves[level[name]].append(name)
        return waves

    def required_networks(self, config: ProjectConfig) -> List[str]:
        """Configured networks the containers of the closure are attached to."""
        required = []
        for name in self.order:
            definition = config.containers.get(name)
            if definition is None:
                continue
            net = definition.network_mode()
            if net in config.networks and net not in required:
                required.append(net)
        return required

    def required_volumes(self, config: ProjectConfig) -> List[str]:
        """Configured volumes the containers of the closure mount."""
        required = []
        for name in self.order:
            definition = config.containers.get(name)
            if definition is None:
                continue
            for source in definition.volume_sources():
                if source in config.volumes and source not in required:
                    required.append(source)
        return required
