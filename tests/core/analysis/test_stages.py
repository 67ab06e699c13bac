"""Tests for the roadmap stage planner."""

from __future__ import annotations

from nugetroadmap.core.analysis import build_root_view, plan_stages
from nugetroadmap.core.tree import PackageNode, PackageStatus


def node(package_id: str, *deps: PackageNode, **kwargs) -> PackageNode:
    kwargs.setdefault("version", "1.0.0")
    return PackageNode(id=package_id, dependencies=deps, **kwargs)


def stub(package_id: str) -> PackageNode:
    return PackageNode(id=package_id, version="1.0.0", is_shared_reference=True)


def _ids(stage) -> list[str]:
    return [p.id for p in stage.packages]


class TestPlanStages:

    def test_root_dependency_goes_later(self) -> None:
        """A depends on root B; B and C are independent."""
        roots = [node("A", node("B")), stub("B"), node("C")]
        stages = plan_stages(roots)
        assert len(stages) == 2
        assert set(_ids(stages[0])) == {"B", "C"}
        assert _ids(stages[1]) == ["A"]
        assert [s.stage for s in stages] == [1, 2]

    def test_transitive_root_dependency(self) -> None:
        """A -> X -> C where C is a root: A is staged after C."""
        roots = [node("A", node("X", node("C"))), stub("C")]
        stages = plan_stages(roots)
        assert [_ids(s) for s in stages] == [["C"], ["A"]]

    def test_dependency_through_shared_subtree(self) -> None:
        """B reaches root C only through X, which was expanded under A."""
        roots = [
            node("A", node("X", node("C"))),
            node("B", stub("X")),
            stub("C"),
        ]
        stages = plan_stages(roots)
        assert _ids(stages[0]) == ["C"]
        assert set(_ids(stages[1])) == {"A", "B"}

    def test_independent_roots_share_one_stage(self) -> None:
        stages = plan_stages([node("A"), node("B"), node("C")])
        assert len(stages) == 1
        assert not stages[0].circular

    def test_circular_roots_form_final_stage(self) -> None:
        a_cycle = PackageNode(id="A", version="1.0.0", is_cyclic=True)
        roots = [node("A", node("B", a_cycle)), stub("B"), node("C")]
        stages = plan_stages(roots)
        assert _ids(stages[0]) == ["C"]
        assert stages[-1].circular
        assert set(_ids(stages[-1])) == {"A", "B"}

    def test_batch_sorted_by_split_then_dependency_count(self) -> None:
        roots = [
            node("Split", status=PackageStatus.SPLIT),
            node("Heavy", node("D1"), node("D2")),
            node("Light", node("D3")),
            node("Bare"),
        ]
        (stage,) = plan_stages(roots)
        assert _ids(stage) == ["Bare", "Light", "Heavy", "Split"]

    def test_self_reference_ignored(self) -> None:
        roots = [node("A", PackageNode(id="A", version="1.0.0", is_cyclic=True))]
        (stage,) = plan_stages(roots)
        assert _ids(stage) == ["A"]
        assert not stage.circular

    def test_empty(self) -> None:
        assert plan_stages([]) == []


class TestRootView:

    def test_dependencies_split_by_origin_and_ordered(self) -> None:
        root = node(
            "Contoso.App",
            node("Contoso.Data", is_internal=True, migration_order=3),
            node("Serilog", migration_order=2),
            node("Contoso.Core", is_internal=True, migration_order=1),
            available_versions=("2.0.0-dev.1", "1.5.0", "1.0.0"),
        )
        view = build_root_view(root)
        assert [d.id for d in view.internal_dependencies] == ["Contoso.Core", "Contoso.Data"]
        assert [d.id for d in view.external_dependencies] == ["Serilog"]
        assert view.latest_version == "1.5.0"
        assert view.dependency_count == 3

    def test_dev_filter_latest_version(self) -> None:
        root = node("A", available_versions=("2.0.0-dev.1", "1.5.0"))
        assert build_root_view(root, "dev").latest_version == "2.0.0-dev.1"

    def test_latest_falls_back_to_current_version(self) -> None:
        assert build_root_view(node("A", version="0.1.0")).latest_version == "0.1.0"

    def test_to_dict(self) -> None:
        view = build_root_view(node("A", node("B")))
        data = view.to_dict()
        assert data["id"] == "A"
        assert data["externalDependencies"][0]["id"] == "B"
