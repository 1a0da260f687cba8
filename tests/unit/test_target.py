"""
Unit tests for target resolution.
"""
import pytest
from pydantic import ValidationError
from hoist.errors import InvalidTargetError, UnknownReferenceError
from hoist.MODELS.container_definition import ContainerDefinition
from hoist.MODELS.dependencies import KindSelector
from hoist.MODELS.project_config import ProjectConfig
from hoist.RUNNERS.dependency_graph import DependencyGraph
from hoist.RUNNERS.target import (
    ResolutionOptions,
    Target,
    TargetResolver,
    allowed_containers,
    parse_reference,
)


def container(name, **kwargs):
    return ContainerDefinition(name=name, image=name, **kwargs)


@pytest.fixture
def config():
    """a -> b -> c linked in a chain, grouped with a repeat."""
    return ProjectConfig(
        containers={
            "a": container("a", links=["b:b"]),
            "b": container("b", links=["c:c"]),
            "c": container("c"),
        },
        groups={"ab": ["a", "b", "a"]},
    )


def resolver(config, **options):
    return TargetResolver(config, DependencyGraph.from_config(config), ResolutionOptions(**options))


class TestExplicit:
    """Tests for the explicit stage."""

    def test_empty_reference_selects_all(self, config):
        """Test that without default group every container is targeted."""
        assert resolver(config).resolve("").initial == ["a", "b", "c"]

    def test_empty_reference_selects_default_group(self, config):
        """Test that the default group wins when configured."""
        config.groups["default"] = ["c"]
        assert resolver(config).resolve("").initial == ["c"]

    def test_group(self, config):
        """Test group references, deduplicated."""
        target = resolver(config).resolve("ab")
        assert target.initial == ["a", "b"]
        assert target.all() == ["a", "b"]

    def test_container(self, config):
        """Test container references."""
        assert resolver(config).resolve("b").initial == ["b"]

    def test_unknown_reference(self, config):
        """Test that unknown references are fatal."""
        with pytest.raises(UnknownReferenceError) as excinfo:
            resolver(config).resolve("nope")
        assert excinfo.value.reference == "nope"
        assert excinfo.value.exit_status == 64

    def test_group_with_undeclared_member(self, config):
        """Test that groups may only list declared containers."""
        config.groups["broken"] = ["a", "ghost"]
        with pytest.raises(UnknownReferenceError):
            resolver(config).resolve("broken")

    def test_allow_list_drops_silently(self, config):
        """Test that non-allowed containers are filtered, not errored."""
        target = resolver(config, allowed=["b"]).resolve("ab")
        assert target.initial == ["b"]


class TestCascade:
    """Tests for the cascade stage."""

    def test_dependencies(self, config):
        """Test forward cascading along all kinds."""
        target = resolver(config, cascade_dependencies="all").resolve("a")
        assert target == Target(initial=["a"], dependencies=["b", "c"], affected=[])

    def test_dependencies_of_group(self, config):
        """Test cascading a group with repeats."""
        target = resolver(config, cascade_dependencies=KindSelector.ALL).resolve("ab")
        assert target.all() == ["a", "b", "c"]
        assert target.dependencies == ["c"]

    def test_affected(self, config):
        """Test backward cascading."""
        target = resolver(config, cascade_affected="all").resolve("c")
        assert target == Target(initial=["c"], dependencies=[], affected=["a", "b"])

    def test_both_directions(self, config):
        """Test that both directions are independent."""
        target = resolver(config, cascade_dependencies="all", cascade_affected="all").resolve("b")
        assert target == Target(initial=["b"], dependencies=["c"], affected=["a"])

    @pytest.mark.parametrize("reference,expected", [
        ("a+dependencies", Target(initial=["a"], dependencies=["b", "c"])),
        ("b+d", Target(initial=["b"], dependencies=["c"])),
        ("c+affected", Target(initial=["c"], affected=["a", "b"])),
        ("b+a", Target(initial=["b"], affected=["a"])),
        ("b+dependencies+affected", Target(initial=["b"], dependencies=["c"], affected=["a"])),
    ])
    def test_reference_extensions(self, config, reference, expected):
        """Test cascades requested through the reference itself."""
        assert resolver(config).resolve(reference) == expected

    def test_unknown_extension(self, config):
        """Test that unknown extensions are rejected."""
        with pytest.raises(InvalidTargetError):
            resolver(config).resolve("a+everything")

    def test_kind_filter(self):
        """Test that only edges of the selected kind are followed."""
        config = ProjectConfig(containers={
            "app": container("app", links=["db"], volumes_from=["data"]),
            "db": container("db", net="container:vpn"),
            "data": container("data"),
            "vpn": container("vpn"),
        })
        assert resolver(config, cascade_dependencies="link").resolve("app").dependencies == ["db"]
        assert resolver(config, cascade_dependencies="volumesFrom").resolve("app").dependencies == ["data"]
        assert resolver(config, cascade_dependencies="net").resolve("app").dependencies == []
        assert resolver(config, cascade_dependencies="all").resolve("app").dependencies == ["data", "db", "vpn"]
        assert resolver(config, cascade_affected="net").resolve("vpn").affected == ["db"]
        assert resolver(config, cascade_affected="link").resolve("vpn").affected == []

    def test_affected_requires_existence(self, config):
        """Test that the backward cascade skips containers that do not exist."""
        target = resolver(config, cascade_affected="all", exists=lambda name: name != "b").resolve("c")
        assert target.affected == []

    def test_undeclared_names_are_dropped(self):
        """Test that cascading never invents containers."""
        config = ProjectConfig(containers={"a": container("a", links=["ghost"])})
        target = resolver(config, cascade_dependencies="all").resolve("a")
        assert target.dependencies == []
        assert target.all() == ["a"]

    def test_not_allowed_names_are_dropped(self, config):
        """Test that cascading stays within the allow-list."""
        target = resolver(config, allowed=["a", "b"], cascade_dependencies="all").resolve("a")
        assert target.dependencies == ["b"]


class TestTarget:
    """Tests for Target."""

    def test_all_sorted_and_unique(self):
        """Test the combined view."""
        target = Target(initial=["c", "a", "c"], dependencies=["b", "a"], affected=["d"])
        assert target.all() == ["a", "b", "c", "d"]
        assert target.includes("d")
        assert not target.includes("e")


class TestResolutionOptions:
    """Tests for ResolutionOptions validation."""

    def test_exists_must_be_callable(self):
        """Test that the existence predicate is validated."""
        assert ResolutionOptions(exists=lambda name: True).exists("a")
        with pytest.raises(ValidationError):
            ResolutionOptions(exists="yes")

    def test_frozen(self):
        """Test that options cannot be changed after creation."""
        options = ResolutionOptions(allowed=["a"], cascade_dependencies="link")
        assert options.allowed == ("a",)
        assert options.cascade_dependencies is KindSelector.LINK
        with pytest.raises(ValidationError):
            options.cascade_dependencies = KindSelector.ALL


class TestHelpers:
    """Tests for reference parsing and the allow-list."""

    def test_parse_reference(self):
        assert parse_reference("") == ("", False, False)
        assert parse_reference("web+d+a") == ("web", True, True)

    def test_allowed_containers(self, config):
        """Test --only and --exclude derivation."""
        assert allowed_containers(config) == ["a", "b", "c"]
        assert allowed_containers(config, only="ab") == ["a", "b"]
        assert allowed_containers(config, excluded=["b"]) == ["a", "c"]
        assert allowed_containers(config, excluded=["ab"], only="") == ["c"]
