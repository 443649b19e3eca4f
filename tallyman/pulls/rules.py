"""Spam and validity predicates for campaign pull requests.

Both predicates are pure functions of a pull request's immutable fields and
the configured rules, so classification can be recomputed on every
evaluation and always agrees with itself.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from tallyman.config import CampaignConfig, env_csv

if typ.TYPE_CHECKING:
    from tallyman.pulls.models import PullRequest

DEFAULT_SPAM_LABELS = frozenset({"spam"})
DEFAULT_DISALLOWED_LABELS = frozenset({"invalid"})
DEFAULT_ACCEPTED_LABELS = frozenset({"hacktoberfest-accepted"})
DEFAULT_TRIVIAL_TITLES = frozenset({"update readme.md", "create readme.md"})


def _normalise(values: typ.Iterable[str]) -> frozenset[str]:
    return frozenset(value.strip().lower() for value in values if value.strip())


@dataclasses.dataclass(frozen=True, slots=True)
class ClassificationRules:
    """Configured heuristics deciding spam and scoring eligibility.

    Attributes
    ----------
    spam_labels
        Labels that mark a pull request as spam.
    spam_repositories
        ``owner/name`` slugs whose pull requests are all spam.
    disallowed_labels
        Labels that make a non-spam pull request ineligible.
    disallowed_repositories
        Repositories whose pull requests never score.
    accepted_labels
        Labels that count as explicit acceptance without a merge.
    trivial_titles
        Exact titles of automated or trivial changes that never score.
    campaign
        Window a pull request must be created in to score.

    """

    spam_labels: frozenset[str] = DEFAULT_SPAM_LABELS
    spam_repositories: frozenset[str] = frozenset()
    disallowed_labels: frozenset[str] = DEFAULT_DISALLOWED_LABELS
    disallowed_repositories: frozenset[str] = frozenset()
    accepted_labels: frozenset[str] = DEFAULT_ACCEPTED_LABELS
    trivial_titles: frozenset[str] = DEFAULT_TRIVIAL_TITLES
    campaign: CampaignConfig = dataclasses.field(default_factory=CampaignConfig)

    def is_spammy(self, pull_request: PullRequest) -> bool:
        """Return True when the pull request trips a spam heuristic."""
        if pull_request.repository in self.spam_repositories:
            return True
        return any(label in self.spam_labels for label in pull_request.labels)

    def is_accepted(self, pull_request: PullRequest) -> bool:
        """Return True when merged or explicitly accepted by label."""
        if pull_request.merged:
            return True
        return any(label in self.accepted_labels for label in pull_request.labels)

    def is_valid(self, pull_request: PullRequest) -> bool:
        """Return True when the pull request counts toward the score."""
        if self.is_spammy(pull_request) or pull_request.is_draft:
            return False
        if pull_request.repository in self.disallowed_repositories:
            return False
        if any(label in self.disallowed_labels for label in pull_request.labels):
            return False
        if pull_request.title.strip().lower() in self.trivial_titles:
            return False
        if not self.campaign.contains(pull_request.created_at):
            return False
        return self.is_accepted(pull_request)

    @classmethod
    def from_env(cls, campaign: CampaignConfig | None = None) -> ClassificationRules:
        """Build rules from the environment, keeping label defaults.

        Reads comma-separated ``TALLYMAN_SPAM_REPOSITORIES`` and
        ``TALLYMAN_DISALLOWED_REPOSITORIES``; ``TALLYMAN_SPAM_LABELS`` and
        ``TALLYMAN_ACCEPTED_LABELS`` replace the defaults when set.
        """
        spam_labels = env_csv("TALLYMAN_SPAM_LABELS")
        accepted_labels = env_csv("TALLYMAN_ACCEPTED_LABELS")
        return cls(
            spam_labels=_normalise(spam_labels) if spam_labels else DEFAULT_SPAM_LABELS,
            spam_repositories=_normalise(env_csv("TALLYMAN_SPAM_REPOSITORIES")),
            disallowed_repositories=_normalise(
                env_csv("TALLYMAN_DISALLOWED_REPOSITORIES")
            ),
            accepted_labels=(
                _normalise(accepted_labels) if accepted_labels else DEFAULT_ACCEPTED_LABELS
            ),
            campaign=campaign if campaign is not None else CampaignConfig.from_env(),
        )
