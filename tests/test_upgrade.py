# tests/test_upgrade.py

import pytest

from scensim_core.upgrade import (
    LAST_UPGRADE_VERSION,
    VERSIONS,
    ContractProject,
    FrameworkVersion,
    UnknownVersionError,
    UpgradeTable,
    VersionParseError,
    default_upgrade_table,
    find_version_str,
    is_sorted,
    is_template_with_autogenerated_json,
    is_template_with_autogenerated_wasm,
    resolve_target_version,
    validate_template_tag,
    versions_iter,
)

V = FrameworkVersion.parse


class TestFrameworkVersion:
    """VERIFIES: Versions parse strictly and order numerically."""

    def test_parse_and_order(self):
        assert V("0.9.10") < V("0.10.0")
        assert str(V(" 0.45.2 ")) == "0.45.2"
        assert V("0.43.0").template_tag() == "v0.43.0"
        assert FrameworkVersion.from_template_tag("v0.44.0") == V("0.44.0")

    @pytest.mark.parametrize("text", ["0.45", "v0.45.2", "0.45.x", "", "1.2.3.4"])
    def test_parse_errors(self, text):
        with pytest.raises(VersionParseError):
            V(text)

    def test_history_is_sorted(self):
        assert is_sorted(VERSIONS)
        assert not is_sorted([V("0.2.0"), V("0.1.0")])
        assert VERSIONS[-1] == LAST_UPGRADE_VERSION


class TestVersionHistory:
    """VERIFIES: Pair iteration stops once the 'from' version reaches the requested last version."""

    def test_iteration_up_to_third_entry(self):
        pairs = list(versions_iter(VERSIONS[2]))
        assert pairs == [(VERSIONS[0], VERSIONS[1]), (VERSIONS[1], VERSIONS[2])]

    def test_first_entry_yields_nothing(self):
        assert list(versions_iter(VERSIONS[0])) == []

    def test_unlisted_version_yields_every_pair(self):
        assert len(list(versions_iter(V("9.9.9")))) == len(VERSIONS) - 1

    def test_find_version_str(self):
        assert find_version_str("0.39.0") == V("0.39.0")
        assert find_version_str("0.39.9") is None

    @pytest.mark.parametrize("tag, expected", [
        ("v0.43.0", True),
        ("v0.45.2", True),
        ("v0.41.2", False),
        ("v0.46.0", False),
    ])
    def test_template_tags(self, tag, expected):
        assert validate_template_tag(tag) is expected

    def test_template_features(self):
        assert not is_template_with_autogenerated_json(V("0.43.5"))
        assert is_template_with_autogenerated_json(V("0.44.0"))
        assert not is_template_with_autogenerated_wasm(V("0.44.0"))
        assert is_template_with_autogenerated_wasm(V("0.45.0"))


class TestUpgradeTable:
    """VERIFIES: Upgrades walk consecutive releases and apply each pair's transform once."""

    @pytest.fixture
    def legacy_project(self):
        return ContractProject(
            name="adder",
            framework_version=V("0.38.0"),
            dependencies={"elrond-wasm": "0.38.0", "elrond-wasm-debug": "0.38.0", "num-bigint": "0.4.0"},
        )

    def test_plan(self):
        table = UpgradeTable()
        assert table.plan(V("0.38.0"), V("0.39.1")) == [(V("0.38.0"), V("0.39.0")), (V("0.39.0"), V("0.39.1"))]
        assert table.plan(V("0.39.1"), V("0.39.1")) == []
        assert table.plan(V("0.40.0"), V("0.39.1")) == []

    def test_plan_with_unknown_version(self):
        with pytest.raises(UnknownVersionError, match="0.39.9"):
            UpgradeTable().plan(V("0.38.0"), V("0.39.9"))

    def test_upgrade_through_crate_rename(self, legacy_project):
        project = default_upgrade_table().upgrade(legacy_project, V("0.39.1"))
        assert project.framework_version == V("0.39.1")
        assert project.dependencies == {
            "multiversx-sc": "0.39.1",
            "multiversx-sc-scenario": "0.39.1",
            "num-bigint": "0.4.0",
        }
        assert project.applied == [(V("0.38.0"), V("0.39.0")), (V("0.39.0"), V("0.39.1"))]
        assert project.needs_check

    def test_patch_upgrade_needs_no_check(self):
        project = ContractProject("vault", V("0.39.1"), {"multiversx-sc": "0.39.1"})
        UpgradeTable().upgrade(project, V("0.39.3"))
        assert project.dependencies == {"multiversx-sc": "0.39.3"}
        assert not project.needs_check

    def test_upgrade_defaults_to_last_version(self):
        project = UpgradeTable().upgrade(ContractProject("adder", V("0.45.0")))
        assert project.framework_version == LAST_UPGRADE_VERSION
        assert len(project.applied) == 1

    def test_custom_transform(self):
        table = UpgradeTable()
        seen = []

        @table.register("0.43.1")
        def record(project, from_version, to_version):
            seen.append((from_version, to_version))
            project.framework_version = to_version

        table.upgrade(ContractProject("adder", V("0.43.0")), V("0.43.2"))
        assert seen == [(V("0.43.0"), V("0.43.1"))]
        assert table.transform_for(V("0.43.0"), V("0.43.1")) is record

    @pytest.mark.parametrize("version", ["9.9.9", "0.28.0"])
    def test_register_needs_a_predecessor(self, version):
        with pytest.raises(UnknownVersionError):
            UpgradeTable().register(version)


class TestTargetResolution:
    """VERIFIES: An unknown requested target falls back to the last upgrade version."""

    def test_resolution(self):
        assert resolve_target_version(None) == LAST_UPGRADE_VERSION
        assert resolve_target_version("0.40.1") == V("0.40.1")
        assert resolve_target_version("7.0.0") == LAST_UPGRADE_VERSION
