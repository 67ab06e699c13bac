"""Migration analysis: status annotation, ordering, conflicts and stages.

Public API::

    from nugetroadmap.core.analysis import MigrationAnalyzer, plan_stages

    analyzed = await MigrationAnalyzer(registry).analyze(roots, "net8.0", ["net6.0"])
    stages = plan_stages(assign_migration_order(analyzed))
"""

from nugetroadmap.core.analysis.analyzer import MigrationAnalyzer, classify
from nugetroadmap.core.analysis.ordering import (
    MigrationOrder,
    assign_migration_order,
    calculate_migration_order,
    detect_version_conflicts,
    sort_by_blockers,
    topological_order,
)
from nugetroadmap.core.analysis.stages import (
    DependencyInfo,
    MigrationStage,
    RootPackageView,
    build_root_view,
    plan_stages,
)

__all__ = [
    "DependencyInfo",
    "MigrationAnalyzer",
    "MigrationOrder",
    "MigrationStage",
    "RootPackageView",
    "assign_migration_order",
    "build_root_view",
    "calculate_migration_order",
    "classify",
    "detect_version_conflicts",
    "plan_stages",
    "sort_by_blockers",
    "topological_order",
]
