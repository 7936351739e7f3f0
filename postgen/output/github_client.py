from __future__ import annotations

import base64
import os
import time
from pathlib import Path
from typing import Iterable, List, Optional

from github import Github, GithubException, InputGitTreeElement

from ..utils.logging import get_logger

logger = get_logger("postgen.output.github")

FILE_MODE = "100644"


class GitHubPublisher:
    """Commit generated files to a GitHub repository in a single commit.

    Uses the Git Data API (blobs -> tree -> commit -> ref update) so no local
    checkout or git binary is needed.

    Environment:
      - GITHUB_TOKEN or GITHUB_API_KEY
      - GITHUB_REPOSITORY (owner/name)
      - GITHUB_BRANCH (default: the repository's default branch)
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        repo: Optional[str] = None,
        branch: Optional[str] = None,
        root: Path | str = ".",
        dry_run: bool = False,
        client: Optional[Github] = None,
    ) -> None:
        self.token = token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GITHUB_API_KEY")
        self.repo_name = repo or os.environ.get("GITHUB_REPOSITORY")
        self.branch = branch or os.environ.get("GITHUB_BRANCH")
        self.root = Path(root).resolve()
        self.dry_run = dry_run
        self._client = client or (Github(self.token) if self.token else None)
        self._repo = None

    def _rate_limit_sleep(self) -> None:
        if not self._client:
            return
        try:
            core = self._client.get_rate_limit().core
            remaining = core.remaining
            reset_ts = core.reset.timestamp()
        except (GithubException, AttributeError) as exc:
            # Unauthenticated or a changed response shape: just try the call
            logger.debug("Skipping rate limit sleep due to error: %s", exc)
            return
        if remaining <= 1:
            sleep_s = max(0.0, reset_ts - time.time())
            logger.info("GitHub rate limit reached; sleeping %.1fs until reset", sleep_s)
            time.sleep(sleep_s)

    def _relative(self, path: Path) -> str:
        return Path(path).resolve().relative_to(self.root).as_posix()

    def _commit(self, message: str, paths: List[Path]) -> str:
        if self._repo is None:
            self._repo = self._client.get_repo(self.repo_name)
        repo = self._repo
        branch = self.branch or repo.default_branch
        ref = repo.get_git_ref(f"heads/{branch}")
        parent = repo.get_git_commit(ref.object.sha)

        elements = []
        for path in paths:
            blob = repo.create_git_blob(base64.b64encode(Path(path).read_bytes()).decode("ascii"), "base64")
            elements.append(InputGitTreeElement(self._relative(path), FILE_MODE, "blob", sha=blob.sha))
        tree = repo.create_git_tree(elements, parent.tree)
        commit = repo.create_git_commit(message, tree, [parent])
        ref.edit(commit.sha)
        return commit.sha

    def commit_and_push(self, message: str, paths: Iterable[Path | str]) -> bool:
        """Publish ``paths`` (files under ``root``) as one commit; never raises."""
        files = sorted({Path(p) for p in paths if Path(p).is_file()})
        if not files:
            logger.info("Nothing to publish")
            return False
        if self.dry_run:
            logger.info("[DRY-RUN] Would commit %d files: %s", len(files), message)
            return False
        if not self._client or not self.repo_name:
            logger.warning("GITHUB_TOKEN/GITHUB_REPOSITORY not set; skipping publish")
            return False

        backoff = 1.5
        for attempt in range(3):
            try:
                self._rate_limit_sleep()
                sha = self._commit(message, files)
                logger.info("Published %d files in commit %s", len(files), sha[:7])
                return True
            except GithubException as exc:
                status = getattr(exc, "status", None)
                if status in (403, 429) and attempt < 2:
                    delay = backoff ** attempt
                    logger.warning("GitHub API throttled/forbidden (%s). Retrying in %.1fs", status, delay)
                    time.sleep(delay)
                    continue
                logger.error("GitHub publish failed (%s): %s", status, exc)
                return False
            except (OSError, ValueError) as exc:
                logger.error("GitHub publish failed: %s", exc)
                return False
        return False
