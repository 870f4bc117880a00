# src/scensim_core/upgrade/transforms.py
"""
Table-driven contract upgrades.

`UpgradeTable` keeps the release history as a `networkx.DiGraph`: every known
version is a node and every consecutive (from, to) pair an edge carrying the
transform that moves a project across it. Edges without a dedicated transform use
`version_bump`, which only rewrites the framework version. Upgrading a project
walks the graph from the project's version to the target one pair at a time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import networkx as nx

from .exceptions import UnknownVersionError
from .version import FrameworkVersion
from .version_history import LAST_UPGRADE_VERSION, MILESTONE_VERSION, VERSIONS, find_version_str, versions_iter

logger = logging.getLogger(__name__)


@dataclass
class ContractProject:
    """
    The upgrade-relevant view of a contract crate: its framework version and its
    framework dependencies (crate name -> version string).
    """
    name: str
    framework_version: FrameworkVersion
    dependencies: Dict[str, str] = field(default_factory=dict)
    applied: List[Tuple[FrameworkVersion, FrameworkVersion]] = field(default_factory=list)
    needs_check: bool = False


UpgradeTransform = Callable[[ContractProject, FrameworkVersion, FrameworkVersion], None]


def version_bump(project: ContractProject, from_version: FrameworkVersion, to_version: FrameworkVersion):
    """Default transform: every dependency pinned to `from_version` moves to `to_version`."""
    for crate, version in project.dependencies.items():
        if version == str(from_version):
            project.dependencies[crate] = str(to_version)
    project.framework_version = to_version


#: Crate renames of the 0.39.0 release.
CRATE_RENAMES_0_39: Dict[str, str] = {
    "elrond-wasm": "multiversx-sc",
    "elrond-wasm-debug": "multiversx-sc-scenario",
    "elrond-wasm-modules": "multiversx-sc-modules",
    "elrond-wasm-node": "multiversx-sc-wasm-adapter",
    "elrond-wasm-output": "multiversx-sc-wasm-adapter",
    "elrond-codec": "multiversx-sc-codec",
}


def rename_crates_0_39(project: ContractProject, from_version: FrameworkVersion, to_version: FrameworkVersion):
    version_bump(project, from_version, to_version)
    renamed: Dict[str, str] = {}
    for crate, version in project.dependencies.items():
        renamed[CRATE_RENAMES_0_39.get(crate, crate)] = version
    project.dependencies = renamed


#: Target versions after which a project must be rebuilt and checked.
POST_PROCESSING_VERSIONS = frozenset(FrameworkVersion.parse(v) for v in (
    "0.28.0", "0.29.0", "0.30.0", "0.31.0", "0.32.0", "0.33.0", "0.34.0", "0.35.0",
    "0.36.0", "0.37.0", "0.40.0", "0.41.0", "0.42.0", "0.43.0", "0.44.0", "0.45.2",
)) | {MILESTONE_VERSION}


class UpgradeTable:
    """The release graph with one transform per consecutive version pair."""

    def __init__(self, versions: Sequence[FrameworkVersion] = VERSIONS):
        self.versions = tuple(versions)
        self.graph = nx.DiGraph()
        self.graph.add_nodes_from(self.versions)
        for from_version, to_version in zip(self.versions, self.versions[1:]):
            self.graph.add_edge(from_version, to_version, transform=version_bump)

    def register(self, to_version: str):
        """
        A decorator to register the transform that upgrades a project *into* `to_version`
        from the release just before it.
        """
        target = FrameworkVersion.parse(to_version)
        predecessors = list(self.graph.predecessors(target)) if target in self.graph else []
        if not predecessors:
            raise UnknownVersionError(version=to_version, known_range=self._known_range())

        def decorator(transform: UpgradeTransform) -> UpgradeTransform:
            edge = self.graph.edges[predecessors[0], target]
            if edge["transform"] is not version_bump:
                logger.warning(f"Upgrade transform into {target} is being redefined.")
            edge["transform"] = transform
            logger.debug(f"Registered upgrade transform {transform.__name__} into {target}.")
            return transform
        return decorator

    def transform_for(self, from_version: FrameworkVersion, to_version: FrameworkVersion) -> UpgradeTransform:
        if not self.graph.has_edge(from_version, to_version):
            raise UnknownVersionError(version=f"{from_version} -> {to_version}", known_range=self._known_range())
        return self.graph.edges[from_version, to_version]["transform"]

    def plan(
        self, current: FrameworkVersion, target: FrameworkVersion
    ) -> List[Tuple[FrameworkVersion, FrameworkVersion]]:
        """The (from, to) pairs leading from `current` to `target`; empty when already there or beyond."""
        for version in (current, target):
            if version not in self.graph:
                raise UnknownVersionError(version=str(version), known_range=self._known_range())
        if current >= target:
            return []
        return [pair for pair in versions_iter(target, self.versions) if pair[0] >= current]

    def upgrade(self, project: ContractProject, target: Optional[FrameworkVersion] = None) -> ContractProject:
        target = target or LAST_UPGRADE_VERSION
        steps = self.plan(project.framework_version, target)
        logger.info(f"Upgrading '{project.name}' from {project.framework_version} to {target} in {len(steps)} step(s).")
        for from_version, to_version in steps:
            transform = self.transform_for(from_version, to_version)
            logger.debug(f"'{project.name}': {from_version} -> {to_version} ({transform.__name__})")
            transform(project, from_version, to_version)
            project.applied.append((from_version, to_version))
            if to_version in POST_PROCESSING_VERSIONS:
                project.needs_check = True
        return project

    def _known_range(self) -> str:
        if not self.versions:
            return "no versions known"
        return f"{self.versions[0]} .. {self.versions[-1]}"


def resolve_target_version(override: Optional[str]) -> FrameworkVersion:
    """A requested target that is not a known release falls back to the last upgrade version."""
    if override is None:
        return LAST_UPGRADE_VERSION
    found = find_version_str(override)
    if found is None:
        logger.warning(f"Requested version '{override}' is not a known release; using {LAST_UPGRADE_VERSION}.")
        return LAST_UPGRADE_VERSION
    return found


def default_upgrade_table() -> UpgradeTable:
    table = UpgradeTable()
    table.register("0.39.0")(rename_crates_0_39)
    return table
