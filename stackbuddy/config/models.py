"""Pydantic models for config types."""

from typing import Literal, Optional
from pydantic import BaseModel, Field

NoteFormatName = Literal["double", "list", "table"]

class RepoConfig(BaseModel):
    """Repository configuration."""
    github_remote: str = "origin"
    github_host: str = "github.com"
    github_repo_owner: Optional[str] = None
    github_repo_name: Optional[str] = None

    class Config:
        """Pydantic config."""
        extra = "allow"

class UserConfig(BaseModel):
    """User configuration."""
    note_format: NoteFormatName = "double"
    log_git_commands: bool = False

    class Config:
        """Pydantic config."""
        extra = "allow"

class ToolConfig(BaseModel):
    """Tool configuration."""
    # How many decorated commits `git log` may return when looking for a parent
    history_window: int = Field(default=32, ge=1)
    max_stack_depth: int = Field(default=64, ge=1)

    class Config:
        """Pydantic config."""
        extra = "allow"

class StackBuddyConfig(BaseModel):
    """Full stackbuddy configuration."""
    repo: RepoConfig = Field(default_factory=RepoConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    tool: ToolConfig = Field(default_factory=ToolConfig)

    class Config:
        """Pydantic config."""
        extra = "allow"
