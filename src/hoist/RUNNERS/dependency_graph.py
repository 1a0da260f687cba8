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
Dependency graph of a project, used to determine in which order containers
can be acted upon.
"""
from typing import Dict, Iterable, Iterator, List, Optional
from ..errors import UnresolvedDependenciesError
from ..MODELS.dependencies import Dependencies
from ..MODELS.project_config import ProjectConfig


class DependencyGraph:
    """
    Maps container names to their dependencies.

    Names that appear as a dependency but are not keys of the graph are
    external references (undeclared or excluded containers).
    """
    def __init__(self, entries: Optional[Dict[str, Dependencies]] = None):
        self._entries: Dict[str, Dependencies] = dict(entries or {})

    @classmethod
    def from_config(cls, config: ProjectConfig, allowed: Optional[Iterable[str]] = None) -> "DependencyGraph":
        """
        Builds the graph for every declared container.

        :param config: The project configuration.
        :param allowed: Optional allow-list; other containers are left out of
            the graph, and edges pointing at them are dropped.
        :return: A fresh dependency graph.
        """
        allowed = list(allowed) if allowed is not None else None
        entries = {}
        for name, definition in config.containers.items():
            if allowed is None or name in allowed:
                entries[name] = definition.dependencies(allowed, config.containers)
        return cls(entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> Dependencies:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Optional[Dependencies]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        return list(self._entries)

    def items(self):
        return self._entries.items()

    def copy(self) -> "DependencyGraph":
        """Deep copy, safe to resolve destructively."""
        return DependencyGraph({name: deps.copy() for name, deps in self._entries.items()})

    def dependents_of(self, name: str, kind="all") -> List[str]:
        """
        Returns the containers declaring a dependency of ``kind`` on ``name``.
        """
        return [other for other, deps in self._entries.items() if deps.includes_as_kind(name, kind)]

    def resolve(self, name: str):
        """
        Marks ``name`` as resolved: deletes it from the graph and strikes it
        from the required dependencies of every other container.

        This mutates the graph in place; ``order`` does not need it.
        """
        self._entries.pop(name, None)
        for dependencies in self._entries.values():
            dependencies.remove(name)

    def order(self, target: Iterable[str], force_order: bool = False) -> List[str]:
        """
        Determines an order in which the containers in ``target`` can be acted
        upon, dependencies first.

        Required dependencies outside of ``target`` can never be resolved,
        unless ``force_order`` is given, in which case they are ignored. The
        graph itself is left untouched.

        :param target: Names of the containers to order.
        :param force_order: Drop constraints pointing outside of ``target``.
        :return: The names of ``target``, each after its required dependencies.
        :raises UnresolvedDependenciesError: On cycles, or unforced external references.
        """
        target = list(dict.fromkeys(target))
        members = set(target)

        remaining: Dict[str, set] = {}
        for name in target:
            dependencies = self._entries.get(name)
            required = set(dependencies.required) if dependencies else set()
            if force_order:
                required &= members
            remaining[name] = required

        order: List[str] = []
        while True:
            discharged = False
            for name in target:
                if name in remaining and not remaining[name]:
                    order.append(name)
                    del remaining[name]
                    for pending in remaining.values():
                        pending.discard(name)
                    discharged = True
            if not discharged:
                break

        if remaining:
            raise UnresolvedDependenciesError(remaining.keys())
        return order
