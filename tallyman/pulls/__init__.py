"""Pull request retrieval, parsing and spam/validity classification."""

from __future__ import annotations

from .classifier import ClassifiedPullRequests, PullRequestClassifier, most_recent_first
from .config import GitHubConfig
from .errors import ClassificationError, PullRequestFetchError
from .models import PullRequest, PullRequestState, parse_pull_request
from .rules import ClassificationRules
from .source import GitHubPullRequestSource, PullRequestSource

__all__ = [
    "ClassificationError",
    "ClassificationRules",
    "ClassifiedPullRequests",
    "GitHubConfig",
    "GitHubPullRequestSource",
    "PullRequest",
    "PullRequestClassifier",
    "PullRequestFetchError",
    "PullRequestSource",
    "PullRequestState",
    "most_recent_first",
    "parse_pull_request",
]
