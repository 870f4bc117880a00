# src/scensim_core/upgrade/__init__.py
import logging
logger = logging.getLogger(__name__)

from .version import FrameworkVersion, is_sorted
from .version_history import (
    LAST_TEMPLATE_VERSION,
    LAST_UPGRADE_VERSION,
    LAST_VERSION,
    MILESTONE_VERSION,
    VERSIONS,
    find_version_str,
    is_template_with_autogenerated_json,
    is_template_with_autogenerated_wasm,
    validate_template_tag,
    versions_iter,
)
from .transforms import (
    ContractProject,
    UpgradeTable,
    default_upgrade_table,
    resolve_target_version,
    version_bump,
)
from .exceptions import UnknownVersionError, VersionParseError

__all__ = [
    "FrameworkVersion", "is_sorted",
    "LAST_TEMPLATE_VERSION", "LAST_UPGRADE_VERSION", "LAST_VERSION", "MILESTONE_VERSION", "VERSIONS",
    "find_version_str", "is_template_with_autogenerated_json", "is_template_with_autogenerated_wasm",
    "validate_template_tag", "versions_iter",
    "ContractProject", "UpgradeTable", "default_upgrade_table", "resolve_target_version", "version_bump",
    "UnknownVersionError", "VersionParseError",
]
