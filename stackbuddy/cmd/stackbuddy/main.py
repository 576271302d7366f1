"""CLI entry point."""

import sys
import click
import logging
from typing import Any, Dict, NoReturn, Optional, Tuple
from click import Context
from pydantic import ValidationError

from ...buddy import StackBuddy
from ...config import Config, default_config
from ...config.config_parser import parse_config
from ...git import RealGit
from ...github import GitHubClient
from ...notes import NoteFormat
from ...typing import StackBuddyError

# Get module logger
logger = logging.getLogger(__name__)

def fail(err: Exception) -> NoReturn:
    """Report an error and exit."""
    logger.error(f"{err}")
    sys.exit(1)

class AliasedGroup(click.Group):
    """Command group with support for aliases."""

    def __init__(self, name: Optional[str] = None, commands: Optional[Dict[str, click.Command]] = None, **attrs: Any) -> None:
        """Initialize with aliases map."""
        super().__init__(name, commands, **attrs)
        self.aliases: Dict[str, str] = {}

    def add_alias(self, alias: str, command: str) -> None:
        """Add an alias for a command."""
        self.aliases[alias] = command

    def get_command(self, ctx: Context, cmd_name: str) -> Optional[click.Command]:
        """Get a command by name, supporting aliases."""
        if cmd_name in self.aliases:
            cmd_name = self.aliases[cmd_name]
        return super().get_command(ctx, cmd_name)

@click.group(cls=AliasedGroup)
@click.pass_context
def cli(ctx: Context) -> None:
    """stackbuddy - navigate and annotate stacked pull requests."""
    ctx.obj = {}

def setup_repo(directory: Optional[str] = None) -> Tuple[Config, RealGit, GitHubClient]:
    """Setup git command, config and GitHub client for the repository."""
    git_cmd = RealGit(default_config(), directory)
    try:
        git_cmd.must_git("rev-parse --git-dir")
        config = Config(parse_config(git_cmd))
    except (StackBuddyError, ValidationError) as e:
        fail(e)
    finally:
        git_cmd.close()

    git_cmd = RealGit(config, directory)
    # The real GitHub client is only created once a command needs it
    github = GitHubClient(config)
    return config, git_cmd, github

def make_buddy(directory: Optional[str], verbose: int) -> StackBuddy:
    from ... import setup_logging
    setup_logging(verbose)

    config, git_cmd, github = setup_repo(directory)
    click.get_current_context().call_on_close(git_cmd.close)
    return StackBuddy(config, git_cmd, github)

def resolve_format(note_format: Optional[str], buddy: StackBuddy) -> NoteFormat:
    return NoteFormat(note_format or buddy.config.user.note_format)

directory_option = click.option(
    '-C', '--directory', type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help='Run as if stackbuddy was started in DIRECTORY instead of the current working directory')
verbose_option = click.option(
    '-v', '--verbose', count=True, help="Increase verbosity (can be used multiple times for more verbosity)")
format_option = click.option(
    '--format', '-f', 'note_format', type=click.Choice([f.value for f in NoteFormat], case_sensitive=False),
    help="How the note describes the neighboring PRs (default: user.note_format, else double)")

@cli.command(name="parent", help="Print the parent of BRANCH (default: the current branch)")
@click.argument('branch', required=False)
@directory_option
@verbose_option
def parent(branch: Optional[str], directory: Optional[str], verbose: int) -> None:
    """Parent command."""
    buddy = make_buddy(directory, verbose)
    try:
        result = buddy.parent(branch)
    except StackBuddyError as e:
        fail(e)
    if result is None:
        logger.info("No parent branch found within the history window")
        return
    click.echo(result)

@cli.command(name="stack", help="Print the stack that ends in BRANCH (default: the current branch)")
@click.argument('branch', required=False)
@click.option('--prs', is_flag=True, help="Print PR numbers instead of branch names")
@directory_option
@verbose_option
def stack(branch: Optional[str], prs: bool, directory: Optional[str], verbose: int) -> None:
    """Stack command."""
    buddy = make_buddy(directory, verbose)
    try:
        if prs:
            for review in buddy.stack_reviews(branch):
                click.echo(f"- #{review}")
        else:
            for b in buddy.stack(branch):
                click.echo(b)
    except StackBuddyError as e:
        fail(e)

@cli.command(name="note", help="Print the note for the PR of BRANCH (default: the current branch)")
@click.argument('branch', required=False)
@format_option
@directory_option
@verbose_option
def note(branch: Optional[str], note_format: Optional[str], directory: Optional[str], verbose: int) -> None:
    """Note command."""
    buddy = make_buddy(directory, verbose)
    try:
        click.echo(buddy.note(branch, resolve_format(note_format, buddy)))
    except StackBuddyError as e:
        fail(e)

@cli.command(name="update-notes", help="Write the note into every PR of the stack that ends in BRANCH")
@click.argument('branch', required=False)
@format_option
@click.option('--dry-run', is_flag=True, help="Show the new PR bodies without updating them")
@directory_option
@verbose_option
def update_notes(branch: Optional[str], note_format: Optional[str], dry_run: bool,
                 directory: Optional[str], verbose: int) -> None:
    """Update notes command."""
    buddy = make_buddy(directory, verbose)
    try:
        report = buddy.update_notes(branch, resolve_format(note_format, buddy), dry_run=dry_run)
    except StackBuddyError as e:
        fail(e)
    if not report.ok:
        logger.error(f"Failed to update {len(report.failed)} PR(s)")
        sys.exit(1)

# Add command aliases
cli.add_alias('st', 'stack')
cli.add_alias('un', 'update-notes')

def main() -> None:
    """Main entry point."""
    cli(obj={})

if __name__ == "__main__":
    main()
