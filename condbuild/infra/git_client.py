"""
Git client infrastructure for condbuild.

Provides the change-detection signal: did any watched path change
between HEAD and the diff branch? All git operations go through
GitClient, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic
"""

import subprocess
from typing import Optional, List, Tuple, Iterable
import logging

logger = logging.getLogger(__name__)


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        changed = client.changed_paths("main")
        if changed is None:
            print("diff failed")
    """

    def __init__(self, cwd: str = ".", remote: str = "origin", timeout: int = 60):
        """
        Initialize GitClient.

        Args:
            cwd: Repository checkout to run git in
            remote: Remote the diff branch lives on
            timeout: Command timeout in seconds (default: 60)
        """
        self.cwd = cwd
        self.remote = remote
        self.timeout = timeout

    def _run(self, args: List[str]) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after "git"

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = ["git", *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )

            if result.returncode != 0 and result.stderr:
                logger.debug(f"git {' '.join(args)}: {result.stderr.strip()}")

            output = result.stdout
            return output.strip() if output else None, result.returncode

        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return None, -1

    def fetch(self, branch: str) -> bool:
        """Fetch a branch from the remote so it can be diffed against."""
        _, code = self._run(["fetch", "--no-tags", "--depth=1", self.remote, branch])
        return code == 0

    def changed_paths(self, diff_branch: str) -> Optional[List[str]]:
        """
        List files changed on HEAD relative to the diff branch.

        Args:
            diff_branch: Branch to diff against (e.g. "main")

        Returns:
            List of changed paths, or None if git could not compute the diff
        """
        ref = f"{self.remote}/{diff_branch}"
        if not self.fetch(diff_branch):
            logger.debug(f"Fetch of {ref} failed, trying existing ref")

        output, code = self._run(["diff", "--name-only", f"{ref}...HEAD"])
        if code != 0:
            # Shallow clones may have no merge base
            output, code = self._run(["diff", "--name-only", ref, "HEAD"])
        if code != 0:
            return None
        return [line.strip() for line in (output or "").split('\n') if line.strip()]


def matches_watched(path: str, watched: Iterable[str]) -> bool:
    """True if path falls under any watched prefix."""
    normalized = path.replace("\\", "/").strip()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return any(normalized.startswith(prefix) for prefix in watched)


class PathTriggerOracle:
    """
    Answers "did any watched path change?" using GitClient.

    No watched paths means every run triggers. A failed diff also
    counts as changed, so an oracle problem never skips a build.
    """

    def __init__(self, git_client: Optional[GitClient] = None):
        self.git = git_client or GitClient()

    def paths_changed(self, watched: Iterable[str], diff_branch: str) -> bool:
        watched = tuple(watched)
        if not watched:
            logger.info("No triggers provided; build always triggered")
            return True

        changed = self.git.changed_paths(diff_branch)
        if changed is None:
            logger.warning(f"Could not diff against {diff_branch}; assuming watched paths changed")
            return True

        hits = [p for p in changed if matches_watched(p, watched)]
        if hits:
            logger.info(f"{len(hits)} changed path(s) match triggers, e.g. {hits[0]}")
            return True
        logger.info(f"No changes under {', '.join(watched)} relative to {diff_branch}")
        return False
