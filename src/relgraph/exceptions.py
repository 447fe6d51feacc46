"""Custom exceptions for RelGraph."""


class RelGraphError(Exception):
    """Base exception for all RelGraph errors."""


class ConfigError(RelGraphError):
    """Configuration-related errors."""


class GraphError(RelGraphError):
    """Dependency graph errors."""


class OracleError(RelGraphError):
    """Dependency fact lookup errors (bad facts file, unknown entity)."""


class SessionClosedError(GraphError):
    """Raised when an inspection session is used after close()."""

    def __init__(self, session: str):
        super().__init__(
            f"{session} has been closed. Open a new session to run more scans."
        )
