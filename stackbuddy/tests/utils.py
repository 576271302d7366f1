"""Shared utilities for stackbuddy tests."""
import os
import shutil
import subprocess
import logging
from dataclasses import dataclass
from typing import Optional

import pytest

from stackbuddy.config import Config
from stackbuddy.git import RealGit

logger = logging.getLogger(__name__)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")

def run_cmd(cmd: str, cwd: Optional[str] = None, check: bool = True) -> str:
    """Run shell command and return output.

    Args:
        cmd: Command to run
        cwd: Working directory
        check: Whether to check return code

    Returns:
        str: Command output
    """
    logger.debug(f"Running command: {cmd}")
    result = subprocess.run(
        cmd, shell=True, check=check, cwd=cwd,
        capture_output=True, text=True
    )
    logger.debug(f"Command output: {result.stdout.strip()}")
    if result.stderr:
        logger.debug(f"Command stderr: {result.stderr.strip()}")
    return result.stdout.strip()

@dataclass
class RepoContext:
    """Throwaway repository with helpers for building branch stacks."""
    repo_dir: str

    def git(self, args: str) -> str:
        return run_cmd(f"git {args}", cwd=self.repo_dir)

    def make_commit(self, file: str, content: str, msg: str) -> str:
        """Create a commit touching ``file`` and return its hash."""
        with open(os.path.join(self.repo_dir, file), "w") as f:
            f.write(f"{content}\n")
        self.git(f"add {file}")
        self.git(f'-c commit.gpgsign=false commit -q -m "{msg}"')
        return self.git("rev-parse HEAD")

    def branch(self, name: str, start: Optional[str] = None) -> None:
        """Create ``name`` and check it out."""
        self.git(f"checkout -q -b {name}" + (f" {start}" if start else ""))

    def checkout(self, name: str) -> None:
        self.git(f"checkout -q {name}")

    def real_git(self, config: Optional[Config] = None) -> RealGit:
        return RealGit(config or Config({}), self.repo_dir)

def create_repo(path: str, trunk: str = "main") -> RepoContext:
    """Create a repository with one commit on ``trunk``."""
    os.makedirs(path, exist_ok=True)
    ctx = RepoContext(repo_dir=str(path))
    ctx.git("init -q")
    ctx.git(f"symbolic-ref HEAD refs/heads/{trunk}")
    ctx.git("config user.name 'Test User'")
    ctx.git("config user.email 'test@example.com'")
    ctx.make_commit("README.md", "# test repository", "Initial commit")
    return ctx

def create_stacked_repo(path: str) -> RepoContext:
    """Create main <- feature-a <- feature-b <- feature-c, with feature-c checked out."""
    ctx = create_repo(path)
    ctx.branch("feature-a")
    ctx.make_commit("a.txt", "a1", "Add a")
    ctx.branch("feature-b")
    ctx.make_commit("b.txt", "b1", "Add b")
    ctx.make_commit("b.txt", "b2", "Extend b")
    ctx.branch("feature-c")
    ctx.make_commit("c.txt", "c1", "Add c")
    return ctx
