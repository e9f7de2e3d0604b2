"""
Retention service for condbuild.

Prunes old versions of a container package according to the retention
policy. Every deletion is independent: one failure does not stop the
others, and a version that is already gone counts as deleted.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple

from ..domain.version import RetentionRequest
from ..exit_codes import APIError
from ..infra.github_client import GitHubClient
from ..retention import compute_deletions

logger = logging.getLogger(__name__)


def split_image_path(image_path: str) -> Tuple[str, str]:
    """Split an image path into (owner, package), e.g. org/platform/worker."""
    owner, _, package = image_path.partition('/')
    return owner, package


@dataclass
class RetentionReport:
    """Outcome of one prune."""
    package: str
    keep: Optional[int] = None
    dry_run: bool = False
    kept: List[int] = field(default_factory=list)
    protected: List[int] = field(default_factory=list)
    deleted: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def nothing_to_delete(self) -> bool:
        return not self.deleted and not self.failed

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'package': self.package,
            'keep': self.keep,
            'dry_run': self.dry_run,
            'kept': self.kept,
            'protected': self.protected,
            'deleted': self.deleted,
            'failed': self.failed,
        }
        if self.error:
            result['error'] = self.error
        return result


class RetentionService:
    """
    Applies the retention policy to a container package.

    Example:
        service = RetentionService(GitHubClient())
        report = service.prune(RetentionRequest("org/platform/worker", 5, "^prod$"))
        print(f"Deleted {len(report.deleted)} versions")
    """

    def __init__(self, github_client: Optional[GitHubClient] = None):
        self.github = github_client or GitHubClient()

    def prune(self, request: RetentionRequest, dry_run: bool = False) -> RetentionReport:
        """
        Delete versions beyond the newest ``keep_count`` unprotected ones.

        Never raises for API problems; they are logged and reported.
        """
        report = RetentionReport(package=request.package_name, keep=request.keep_count, dry_run=dry_run)
        if not request.enabled:
            logger.debug("keep_versions not set; retention skipped")
            return report

        owner, package = split_image_path(request.package_name)
        try:
            versions = self.github.list_package_versions(owner, package)
        except APIError as e:
            report.error = str(e)
            logger.warning(f"Retention skipped for {request.package_name}: {e}")
            return report

        decision = compute_deletions(versions, request.keep_count, request.ignore_pattern)
        report.kept = decision.kept
        report.protected = decision.protected

        to_delete = [v.id for v in versions if v.id in decision.delete]
        if not to_delete:
            logger.info(f"No versions of {request.package_name} to delete")
            return report

        for version_id in to_delete:
            if dry_run:
                logger.info(f"Would delete version {version_id} of {request.package_name}")
                report.deleted.append(version_id)
                continue
            if self.github.delete_package_version(owner, package, version_id):
                report.deleted.append(version_id)
            else:
                report.failed.append(version_id)

        logger.info(
            f"Retention for {request.package_name}: {len(report.deleted)} deleted, "
            f"{len(report.failed)} failed, {len(report.kept)} kept, {len(report.protected)} protected"
        )
        return report
