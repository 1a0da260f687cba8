from hoist.CONVERTERS.to_dot import DotConverter
from hoist.MODELS.dependencies import Dependencies, DependencyKind
from hoist.RUNNERS.dependency_graph import DependencyGraph


def test_render():
    web = Dependencies()
    web.add("api", DependencyKind.LINK)
    web.add("assets", DependencyKind.VOLUMES_FROM)
    api = Dependencies()
    api.add("vpn", DependencyKind.NET)
    graph = DependencyGraph({"web": web, "api": api, "assets": Dependencies(), "vpn": Dependencies()})

    dot = DotConverter(graph).render(targeted=["web"])

    assert dot.startswith("digraph {")
    assert dot.rstrip().endswith("}")
    assert '"web" [style=bold,color=red]' in dot
    assert '"api" [style=bold]' in dot
    assert '"web"->"api" [style=solid]' in dot
    assert '"web"->"assets" [style=dashed]' in dot
    assert '"api"->"vpn" [style=dotted]' in dot
