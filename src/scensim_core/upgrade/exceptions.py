# src/scensim_core/upgrade/exceptions.py
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class VersionParseError(DiagnosableError):
    """Raised when a string is not a `major.minor.patch` framework version."""
    text: str
    details: str

    def __str__(self):
        return f"Invalid framework version '{self.text}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Framework Version",
            details=self.details,
            suggestion="Write versions as three dot-separated numbers, optionally prefixed with 'v' (e.g. 'v0.45.2').",
            context={'user_input': self.text}
        )


@dataclass()
class UnknownVersionError(DiagnosableError):
    """Raised when a version is valid but absent from the known version history."""
    version: str
    known_range: str

    def __str__(self):
        return f"Framework version {self.version} is not a known release ({self.known_range})."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Framework Version",
            details=str(self),
            suggestion="Upgrades can only start from and stop at a released version listed in VERSIONS.",
            context={'user_input': self.version}
        )
