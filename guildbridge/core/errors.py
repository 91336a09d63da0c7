"""Custom exception hierarchy for guildbridge."""

from __future__ import annotations


class GuildBridgeError(Exception):
    """Base error type."""


class ConfigError(GuildBridgeError):
    pass


class StructureConflict(ConfigError):
    """Raised when the structure document changed on disk during a mutation."""


class ProcessError(GuildBridgeError):
    """Base class for AI CLI invocation failures."""


class InvocationLaunchError(ProcessError):
    pass


class InvocationExitError(ProcessError):
    def __init__(self, exit_code: int, stderr: str) -> None:
        super().__init__(f"Claude CLI exited with code {exit_code}: {stderr}")
        self.exit_code = exit_code
        self.stderr = stderr


class InvocationTimeout(ProcessError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Claude CLI timeout ({timeout:g} seconds)")
        self.timeout = timeout


class GitHubError(GuildBridgeError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class DiscordError(GuildBridgeError):
    pass


class RoutingError(GuildBridgeError):
    """Repository or issue category could not be derived from the channel."""


class PermissionDenied(GuildBridgeError):
    pass


class ApprovalError(GuildBridgeError):
    pass


class ApprovalTimeout(ApprovalError):
    pass
