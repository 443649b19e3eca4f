"""Assemble the tallyman service graph from environment configuration.

Usage
-----
Build services for the API layer::

    from tallyman.factory import build_services

    services = build_services(session_factory)
    app = create_app(
        AppDependencies(
            transition_service=services.transition_service,
            table_client=services.table_client,
        )
    )

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from tallyman.config import CampaignConfig
from tallyman.eligibility import EligibilityEngine
from tallyman.http import CachingFetcher, HttpConfig, MemoryCacheStore, RateLimiterRegistry
from tallyman.participants import ParticipantRepository
from tallyman.pulls import (
    ClassificationRules,
    GitHubConfig,
    GitHubPullRequestSource,
    PullRequestClassifier,
)
from tallyman.tables import ExternalTableClient, PlaceholderContentProvider, TableConfig
from tallyman.transitions import StateTransitionService

if typ.TYPE_CHECKING:
    import httpx
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

__all__ = ["ServiceConfig", "Services", "build_services"]


@dc.dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Every configuration object the service graph reads."""

    http: HttpConfig
    tables: TableConfig
    github: GitHubConfig
    campaign: CampaignConfig
    rules: ClassificationRules

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Read all configuration from the environment."""
        campaign = CampaignConfig.from_env()
        return cls(
            http=HttpConfig.from_env(),
            tables=TableConfig.from_env(),
            github=GitHubConfig.from_env(),
            campaign=campaign,
            rules=ClassificationRules.from_env(campaign),
        )


@dc.dataclass(frozen=True, slots=True)
class Services:
    """Built collaborators sharing one limiter registry and cache store.

    ``repository`` and ``transition_service`` are ``None`` when no session
    factory was supplied; the table client never needs one.
    """

    table_client: ExternalTableClient
    fetchers: tuple[CachingFetcher, ...]
    repository: ParticipantRepository | None = None
    transition_service: StateTransitionService | None = None

    async def aclose(self) -> None:
        """Close the HTTP clients owned by the fetchers."""
        for fetcher in self.fetchers:
            await fetcher.aclose()


def build_services(
    session_factory: async_sessionmaker[AsyncSession] | None,
    *,
    config: ServiceConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Services:
    """Build the table client and, given storage, the transition service.

    Parameters
    ----------
    session_factory
        Async session factory for participant persistence, or ``None`` to
        build only the content table path.
    config
        Pre-built configuration; read from the environment when omitted.
    http_client
        Optional shared client (for example backed by ``httpx.MockTransport``);
        when omitted each fetcher owns its own client.

    """
    cfg = config or ServiceConfig.from_env()
    limiters = RateLimiterRegistry(cfg.http.requests_per_second)
    store = MemoryCacheStore()

    table_fetcher = CachingFetcher(
        "airtable",
        limiters=limiters,
        store=store,
        config=cfg.http,
        http_client=http_client,
    )
    table_client = ExternalTableClient(
        cfg.tables,
        fetcher=table_fetcher,
        fallback=PlaceholderContentProvider(cfg.tables.placeholder_path),
    )
    if session_factory is None:
        return Services(table_client=table_client, fetchers=(table_fetcher,))

    github_fetcher = CachingFetcher(
        "github",
        limiters=limiters,
        store=store,
        config=cfg.http,
        http_client=http_client,
    )
    source = GitHubPullRequestSource(
        cfg.github, fetcher=github_fetcher, campaign=cfg.campaign
    )
    engine = EligibilityEngine(PullRequestClassifier(source, cfg.rules))
    repository = ParticipantRepository(session_factory)
    transition_service = StateTransitionService(
        repository,
        engine,
        campaign=cfg.campaign,
        github=cfg.github,
    )
    return Services(
        table_client=table_client,
        fetchers=(table_fetcher, github_fetcher),
        repository=repository,
        transition_service=transition_service,
    )
