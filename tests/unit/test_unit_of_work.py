"""
Unit tests for the unit of work scheduler.
"""
import pytest
from hoist.errors import EmptyTargetError, UnresolvedDependenciesError
from hoist.MODELS.command import Action, Command, PlannedStep
from hoist.MODELS.container_definition import ContainerDefinition
from hoist.MODELS.dependencies import Dependencies, DependencyKind
from hoist.MODELS.project_config import ProjectConfig
from hoist.RUNNERS.dependency_graph import DependencyGraph
from hoist.RUNNERS.unit_of_work import UnitOfWork


def graph_of(**entries):
    """Builds a graph from keyword arguments of (name, kind) tuples."""
    graph = {}
    for name, edges in entries.items():
        deps = Dependencies()
        for target, kind in edges:
            deps.add(target, kind)
        graph[name] = deps
    return DependencyGraph(graph)


LINK = DependencyKind.LINK
VOLUMES_FROM = DependencyKind.VOLUMES_FROM
NET = DependencyKind.NET


@pytest.fixture
def run_chain():
    """a links to b, b mounts volumes from c."""
    return graph_of(a=[("b", LINK)], b=[("c", VOLUMES_FROM)], c=[])


class TestBuild:
    """Tests for UnitOfWork.build."""

    def test_resolvable(self):
        """Test a fully targeted chain."""
        graph = graph_of(a=[("b", VOLUMES_FROM)], b=[("c", VOLUMES_FROM)], c=[])
        uow = UnitOfWork.build(graph, ["a", "b", "c"])
        assert uow.order == ["c", "b", "a"]
        assert uow.containers() == ["c", "b", "a"]
        assert uow.targeted() == ["c", "b", "a"]
        assert uow.must_run == []

    def test_cycle_fails(self):
        """Test that cycles cannot be planned."""
        graph = graph_of(a=[("b", LINK)], b=[("c", LINK)], c=[("a", LINK)])
        with pytest.raises(UnresolvedDependenciesError):
            UnitOfWork.build(graph, ["a", "b", "c"])

    def test_incomplete_graph_fails(self):
        """Test that a dependency missing from the graph cannot be planned."""
        graph = graph_of(a=[("b", LINK)])
        with pytest.raises(UnresolvedDependenciesError) as excinfo:
            UnitOfWork.build(graph, ["a"])
        assert excinfo.value.unresolved == ["a", "b"]

    def test_partial_target(self):
        """Test that dependencies outside the target join the closure."""
        graph = graph_of(a=[("b", VOLUMES_FROM)], b=[("c", LINK)], c=[])
        uow = UnitOfWork.build(graph, ["a", "b"])
        assert uow.containers() == ["c", "b", "a"]
        assert uow.targeted() == ["b", "a"]
        assert uow.must_run == ["c"]

    def test_closure_and_must_run(self, run_chain):
        """Test the closure across a link followed by a volumes-from."""
        uow = UnitOfWork.build(run_chain, ["a"])
        assert sorted(uow.containers()) == ["a", "b", "c"]
        assert uow.must_run == ["b"]
        assert uow.targeted() == ["a"]
        assert uow.associated() == ["c", "b"]
        assert uow.requires_running("b")
        assert not uow.requires_running("c")

    def test_net_must_run(self):
        """Test that sharing a network stack requires the other side running."""
        graph = graph_of(app=[("vpn", NET)], vpn=[])
        assert UnitOfWork.build(graph, ["app"]).must_run == ["vpn"]

    def test_targeted_never_in_must_run(self):
        """Test that must run only covers containers outside the target."""
        graph = graph_of(a=[("b", LINK)], b=[])
        assert UnitOfWork.build(graph, ["a", "b"]).must_run == []

    def test_empty_target_fails(self, run_chain):
        """Test that an empty target is reported distinctly."""
        with pytest.raises(EmptyTargetError) as excinfo:
            UnitOfWork.build(run_chain, [])
        assert "cannot be applied to any container" in str(excinfo.value)

    def test_idempotent(self, run_chain):
        """Test that planning twice yields the same plan."""
        first = UnitOfWork.build(run_chain, ["a"])
        second = UnitOfWork.build(run_chain, ["a"])
        assert first.order == second.order
        assert first.must_run == second.must_run

    def test_reverse_views(self, run_chain):
        """Test reversed views."""
        uow = UnitOfWork.build(run_chain, ["a", "b"])
        assert uow.containers(reverse=True) == ["a", "b", "c"]
        assert uow.targeted(reverse=True) == ["a", "b"]


class TestPlan:
    """Tests for the per command plans."""

    def test_run_plan(self, run_chain):
        """Test that supporting containers are only started when they must run."""
        uow = UnitOfWork.build(run_chain, ["a"])
        assert uow.plan(Command.RUN) == [
            PlannedStep("c", Action.NONE),
            PlannedStep("b", Action.ENSURE_STARTED),
            PlannedStep("a", Action.APPLY),
        ]

    def test_run_plan_with_missing_container(self, run_chain):
        """Test that containers which do not exist are started."""
        uow = UnitOfWork.build(run_chain, ["a"])
        steps = uow.plan(Command.START, exists=lambda name: name != "c")
        assert steps[0] == PlannedStep("c", Action.ENSURE_STARTED)

    def test_stop_plan(self, run_chain):
        """Test that tear down walks the targeted containers in reverse."""
        uow = UnitOfWork.build(run_chain, ["a", "b"])
        assert uow.plan(Command.STOP) == [
            PlannedStep("a", Action.APPLY),
            PlannedStep("b", Action.APPLY),
        ]

    def test_provision_plan(self, run_chain):
        """Test that other commands walk the targeted containers in order."""
        uow = UnitOfWork.build(run_chain, ["a", "b"])
        assert [step.name for step in uow.plan("provision")] == ["b", "a"]

    @pytest.mark.parametrize("command", [Command.UP, Command.LIFT, Command.RUN, Command.CREATE,
                                         Command.START, Command.EXEC])
    def test_bring_up_commands(self, command):
        assert command.brings_up
        assert not command.reverse_order

    @pytest.mark.parametrize("command", [Command.STOP, Command.KILL, Command.RM, Command.PAUSE])
    def test_tear_down_commands(self, command):
        assert command.reverse_order
        assert not command.brings_up


class TestWaves:
    """Tests for grouping the order into waves."""

    def test_waves(self):
        """Test that independent containers share a wave."""
        graph = graph_of(web=[("api", LINK), ("cache", LINK)], api=[("db", LINK)], cache=[], db=[])
        uow = UnitOfWork.build(graph, ["web"])
        waves = uow.waves()
        assert sorted(waves[0]) == ["cache", "db"]
        assert waves[1:] == [["api"], ["web"]]


class TestRequirements:
    """Tests for the networks and volumes a unit of work needs."""

    def test_required_networks_and_volumes(self):
        config = ProjectConfig(
            containers={
                "web": ContainerDefinition(name="web", image="nginx", net="front",
                                           volumes=["static:/srv", "./conf:/etc/nginx"]),
                "db": ContainerDefinition(name="db", image="postgres", volumes=["pgdata:/var/lib/pg"]),
            },
            networks=["front"],
            volumes=["static", "pgdata"],
        )
        uow = UnitOfWork.build(DependencyGraph.from_config(config), ["web"])
        assert uow.required_networks(config) == ["front"]
        assert uow.required_volumes(config) == ["static"]
