# errors.py


class AuditError(Exception):
    """Base class for errors that stop an audit run."""


class ConfigError(AuditError):
    """Configuration could not be parsed or is out of range."""


class AuditSetupError(AuditError):
    """The browser (or another run-level resource) could not be started."""


class TargetUnreachableError(AuditError):
    """The seed URL could not be loaded at all."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Target {url} is unreachable: {reason}")
        self.url = url
        self.reason = reason
