"""Custom exceptions for ConsensusWarn."""

from __future__ import annotations


class ConsensusWarnError(Exception):
    """Base exception for all ConsensusWarn errors."""


class ConfigError(ConsensusWarnError):
    """Configuration-related errors."""


class MalformedRootSpec(ConsensusWarnError):
    """A root specification has no separable function or method name."""

    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"malformed function or method: {spec}")


class MissingRoots(ConsensusWarnError):
    """One or more roots were not defined anywhere in the program model."""

    def __init__(self, missing: list[str]):
        self.missing = sorted(missing)
        super().__init__(f"missing roots: {','.join(self.missing)}")


class ModelLoadError(ConsensusWarnError):
    """The program model could not be loaded from source."""


class PatchParseError(ConsensusWarnError):
    """The diff payload is malformed."""


class GitHubError(ConsensusWarnError):
    """GitHub API errors."""
