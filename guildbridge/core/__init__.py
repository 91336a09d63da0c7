"""Core domain logic for GuildBridge."""

from .config import Config, load_config
from .errors import (
    ApprovalError,
    ApprovalTimeout,
    ConfigError,
    DiscordError,
    GitHubError,
    GuildBridgeError,
    InvocationExitError,
    InvocationLaunchError,
    InvocationTimeout,
    PermissionDenied,
    ProcessError,
    RoutingError,
    StructureConflict,
)
from .models import (
    ApprovalState,
    ApprovalTicket,
    ChannelContext,
    CommandRequest,
    CreatedIssue,
    Embed,
    FeatureRequest,
    IssueCategory,
    Priority,
    RequestKind,
)
from .conversation import ConversationStore
from .router import Router

__all__ = [
    "Config",
    "load_config",
    "ApprovalState",
    "ApprovalTicket",
    "ChannelContext",
    "CommandRequest",
    "CreatedIssue",
    "Embed",
    "FeatureRequest",
    "IssueCategory",
    "Priority",
    "RequestKind",
    "GuildBridgeError",
    "ConfigError",
    "StructureConflict",
    "ProcessError",
    "InvocationLaunchError",
    "InvocationExitError",
    "InvocationTimeout",
    "GitHubError",
    "DiscordError",
    "RoutingError",
    "PermissionDenied",
    "ApprovalError",
    "ApprovalTimeout",
    "ConversationStore",
    "Router",
]
