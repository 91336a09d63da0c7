"""AI CLI process helpers."""

from .claude_cli import ClaudeCli, clean_output
from .transcript import SessionTranscript

__all__ = ["ClaudeCli", "SessionTranscript", "clean_output"]
