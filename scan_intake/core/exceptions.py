# scan_intake/core/exceptions.py


class IntakeError(Exception):
    """Base class for errors raised by the intake service."""


class ConfigurationError(IntakeError):
    """Raised when the configuration cannot be turned into a valid IntakeConfiguration."""


class WatchRegistrationError(IntakeError):
    """Raised when the incoming directory can no longer be watched. Fatal for the watch loop."""

    def __init__(self, directory: str, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"Watch on {directory} is no longer valid: {reason}")


class CollisionResolutionError(IntakeError):
    """Raised when no free destination name can be found."""

    def __init__(self, directory: str, base_name: str, attempts: int):
        self.directory = directory
        self.base_name = base_name
        self.attempts = attempts
        super().__init__(
            f"Could not resolve name conflict after {attempts} attempts: "
            f"{base_name} in {directory}"
        )
