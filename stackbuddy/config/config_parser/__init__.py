"""Config parser logic."""

from pathlib import Path
from typing import Dict, Optional, Tuple, Any
import logging
import yaml

from ...typing import GitInterface, StackBuddyError

# Get module logger
logger = logging.getLogger(__name__)

CONFIG_FILENAME = '.stackbuddy.yaml'

RepoConfig = Dict[str, Any]  # Use Any since yaml can return various types
Config = Dict[str, RepoConfig]

def default_config_dict() -> Config:
    return {
        'repo': {
            'github_remote': 'origin',
            'github_host': 'github.com',
        },
        'user': {
            'note_format': 'double',
            'log_git_commands': False,
        },
        'tool': {
            'stackbuddy': {
                'history_window': 32,
                'max_stack_depth': 64,
            }
        }
    }

def parse_remote_url(remote_url: str, host: str = 'github.com') -> Optional[Tuple[str, str]]:
    """Extract (owner, name) from an SSH or HTTPS remote URL."""
    remote_url = remote_url.strip()
    if "://" in remote_url:
        # HTTPS/SSH URL format: https://github.com/owner/repo.git
        if f"{host}/" not in remote_url:
            return None
        repo_part = remote_url.split(f"{host}/", 1)[-1]
    elif f"@{host}:" in remote_url:
        # SCP-like format: git@github.com:owner/repo.git
        repo_part = remote_url.split(f"@{host}:", 1)[-1]
    else:
        return None

    repo_part = repo_part.strip("/")
    if repo_part.endswith(".git"):
        repo_part = repo_part[:-len(".git")]
    parts = repo_part.split("/")
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]

def load_config_file(path: Path) -> Dict[str, Any]:
    """Load a yaml config file, returning an empty dict when it is absent."""
    try:
        with open(path, 'r') as f:
            logger.info(f"Found {path}, loading...")
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.debug(f"No {path} found, using defaults")
        return {}
    except yaml.YAMLError as e:
        raise StackBuddyError(f"Invalid config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise StackBuddyError(f"Invalid config file {path}: expected a mapping")
    return data

def parse_config(git_cmd: GitInterface) -> Config:
    """Parse config from the repository config file and the git remote."""
    config = default_config_dict()

    toplevel = Path(git_cmd.must_git("rev-parse --show-toplevel").strip())
    file_config = load_config_file(toplevel / CONFIG_FILENAME)
    for section in ('repo', 'user'):
        if isinstance(file_config.get(section), dict):
            config[section].update(file_config[section])
    tool_section = file_config.get('tool')
    if isinstance(tool_section, dict) and isinstance(tool_section.get('stackbuddy'), dict):
        config['tool']['stackbuddy'].update(tool_section['stackbuddy'])

    # Try to extract repo owner/name from git remote if not in config
    repo = config['repo']
    if not repo.get('github_repo_owner') or not repo.get('github_repo_name'):
        remote = repo['github_remote']
        try:
            remote_url = git_cmd.must_git(f"remote get-url {remote}")
        except StackBuddyError as e:
            logger.warning(f"Failed to read remote '{remote}': {e}")
            return config
        parsed = parse_remote_url(remote_url, repo['github_host'])
        if parsed is None:
            logger.warning(f"Remote '{remote}' ({remote_url}) is not a {repo['github_host']} repository")
            return config
        owner, name = parsed
        if not repo.get('github_repo_owner'):
            repo['github_repo_owner'] = owner
        if not repo.get('github_repo_name'):
            repo['github_repo_name'] = name

    return config
