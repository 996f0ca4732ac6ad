"""Fatal error types.

Everything raised from here aborts the invocation with exit code 2; soft
conditions such as a missing base ref never surface as exceptions.
"""


class TurboIgnoreError(Exception):
    pass


class ConfigError(TurboIgnoreError):
    """Malformed or inconsistent workspace metadata or settings."""


class CycleError(ConfigError):
    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("circular dependency: " + " → ".join(cycle))


class VersionControlError(TurboIgnoreError):
    """The git collaborator could not be queried at all."""
