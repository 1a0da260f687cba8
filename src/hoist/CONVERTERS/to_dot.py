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
Converters for rendering a dependency graph in the DOT language.
"""
from typing import Iterable, Optional, TextIO
from jinja2 import Template
from ..MODELS.dependencies import DependencyKind
from ..RUNNERS.dependency_graph import DependencyGraph

DOT_TEMPLATE = """digraph {
{%- for node in nodes %}
  "{{ node.name }}" [style=bold{% if node.targeted %},color=red{% endif %}]
{%- endfor %}
{%- for edge in edges %}
  "{{ edge.source }}"->"{{ edge.target }}" [style={{ edge.style }}]
{%- endfor %}
}
"""

EDGE_STYLES = {
    DependencyKind.LINK: "solid",
    DependencyKind.VOLUMES_FROM: "dashed",
    DependencyKind.NET: "dotted",
}


class DotConverter:
    """
    Renders a dependency graph as a directed graph, highlighting targeted containers.
    """

    def __init__(self, graph: DependencyGraph):
        """
        Initializes the DOT converter.

        :param graph: The dependency graph to render.
        """
        self.graph = graph
        self.template = Template(DOT_TEMPLATE)

    def render(self, targeted: Optional[Iterable[str]] = None) -> str:
        """
        Renders the graph.

        :param targeted: Names of the containers to highlight.
        :return: The DOT source.
        """
        targeted = set(targeted or [])
        nodes = [{"name": name, "targeted": name in targeted} for name in sorted(self.graph)]
        edges = []
        for name in sorted(self.graph):
            dependencies = self.graph[name]
            for dependency in dependencies.all:
                for kind in dependencies.kinds_of(dependency):
                    edges.append({"source": name, "target": dependency, "style": EDGE_STYLES[kind]})
        return self.template.render(nodes=nodes, edges=edges)

    def convert(self, output: TextIO, targeted: Optional[Iterable[str]] = None):
        """
        Writes the rendered graph to ``output``.
        """
        output.write(self.render(targeted))
