"""
Exceptions raised by the statistics bridge.
"""


class StatsBridgeError(Exception):
    """Base exception for the statistics bridge"""
    pass


class ConfigurationError(StatsBridgeError):
    """Missing or invalid backend configuration"""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class RegistrationError(StatsBridgeError):
    """A measure or view was registered twice, or against an unknown measure"""
    pass


class RecordingError(StatsBridgeError):
    """A single observation could not be recorded"""
    pass
