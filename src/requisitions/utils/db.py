"""Schema management for SQL-backed deployments.

The memory provider used in development and tests needs none of this; with
PostgreSQL (or SQLite) every aggregate and entity table, plus the outbox
when enabled, is created or dropped through SQLAlchemy metadata.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("postgresql", "sqlite")


def _sql_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in _SQL_PROVIDERS:
            yield provider


def _register_tables(domain: Domain, provider) -> None:
    # A repository's DAO declares its table on the provider metadata when first touched
    records = [*domain.registry.aggregates.values(), *domain.registry.entities.values()]
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018

    outbox_repos = getattr(domain, "_outbox_repos", {})
    if provider.name in outbox_repos:
        outbox_repos[provider.name]._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create every table the domain persists to."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_tables(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _sql_providers(domain):
            _register_tables(domain, provider)
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
