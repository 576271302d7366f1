"""Config module."""

from typing import Dict, Any
from .models import RepoConfig, UserConfig, StackBuddyConfig, ToolConfig

class Config(StackBuddyConfig):
    """Config object holding repository, user and tool config.

    Built from the nested dict produced by the config parser, where tool
    settings live under ``tool.stackbuddy``.
    """
    def __init__(self, config: Dict[str, Dict[str, Any]]):
        """Initialize with parsed config dict."""
        repo_config = config.get('repo', {})
        user_config = config.get('user', {})
        tool_section = config.get('tool', {})
        tool_config = tool_section.get('stackbuddy', {})

        super().__init__(
            repo=RepoConfig.model_validate(repo_config),
            user=UserConfig.model_validate(user_config),
            tool=ToolConfig.model_validate(tool_config),
        )

def default_config() -> Config:
    """Get default config without parsing git."""
    return Config({
        'repo': {
            'github_remote': 'origin',
        },
        'user': {},
        'tool': {
            'stackbuddy': {
                'history_window': 32,
            }
        }
    })
