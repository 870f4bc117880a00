# src/scensim_core/upgrade/version_history.py
"""
The released framework versions, in release order, and the iteration contract
the upgrader relies on: consecutive (from, to) pairs starting at the oldest known
version and stopping once `from` reaches the requested last version.
"""
import logging
from typing import Iterator, Optional, Sequence, Tuple

from .version import FrameworkVersion

logger = logging.getLogger(__name__)

_V = FrameworkVersion.parse

#: Known versions for the upgrader. Extend with every release.
VERSIONS: Tuple[FrameworkVersion, ...] = tuple(_V(v) for v in (
    "0.28.0", "0.29.0", "0.29.2", "0.29.3", "0.30.0", "0.31.0", "0.31.1", "0.32.0",
    "0.33.0", "0.33.1", "0.34.0", "0.34.1", "0.35.0", "0.36.0", "0.36.1", "0.37.0",
    "0.38.0", "0.39.0", "0.39.1", "0.39.2", "0.39.3", "0.39.4", "0.39.5", "0.39.6",
    "0.39.7", "0.39.8", "0.40.0", "0.40.1", "0.41.0", "0.41.1", "0.41.2", "0.41.3",
    "0.42.0", "0.43.0", "0.43.1", "0.43.2", "0.43.3", "0.43.4", "0.43.5", "0.44.0",
    "0.45.0", "0.45.2",
))

#: The last version used for upgrades and templates.
LAST_VERSION: FrameworkVersion = _V("0.45.2")

#: Where upgrades stop unless another target is requested.
LAST_UPGRADE_VERSION: FrameworkVersion = LAST_VERSION

LAST_TEMPLATE_VERSION: FrameworkVersion = _V("0.45.2")

#: Contract templates are published from 0.43.0 on.
LOWER_VERSION_WITH_TEMPLATE_TAG: FrameworkVersion = _V("0.43.0")
TEMPLATE_VERSION_WITH_AUTOGENERATED_JSON: FrameworkVersion = _V("0.44.0")
TEMPLATE_VERSION_WITH_AUTOGENERATED_WASM: FrameworkVersion = _V("0.45.0")

#: The release that renamed the framework crates; upgrades through it need extra post-processing.
MILESTONE_VERSION: FrameworkVersion = _V("0.39.0")


def validate_template_tag(tag: str) -> bool:
    version = FrameworkVersion.from_template_tag(tag)
    return LOWER_VERSION_WITH_TEMPLATE_TAG <= version <= LAST_VERSION


def is_template_with_autogenerated_json(version: FrameworkVersion) -> bool:
    return version >= TEMPLATE_VERSION_WITH_AUTOGENERATED_JSON


def is_template_with_autogenerated_wasm(version: FrameworkVersion) -> bool:
    return version >= TEMPLATE_VERSION_WITH_AUTOGENERATED_WASM


def find_version_str(text: str) -> Optional[FrameworkVersion]:
    return next((version for version in VERSIONS if str(version) == text), None)


def versions_iter(
    last_version: FrameworkVersion,
    versions: Sequence[FrameworkVersion] = VERSIONS,
) -> Iterator[Tuple[FrameworkVersion, FrameworkVersion]]:
    """
    Yields consecutive (from, to) pairs of `versions`, from the first one onward,
    until `from` equals `last_version`. A `last_version` equal to the first entry
    yields nothing; one that is not listed yields every pair.
    """
    for from_version, to_version in zip(versions, versions[1:]):
        if from_version == last_version:
            return
        yield from_version, to_version
