import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]

# psycopg2 ships a compiled extension; a cached wheel built for another
# interpreter fails at import, so it is always reinstalled.
_REBUILD = ["psycopg2-binary"]


def _install(session: nox.Session) -> None:
    session.run("poetry", "install", "--with", "test", "--all-extras", external=True)
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_REBUILD)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Whole suite: domain, application and HTTP tests."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Aggregates, negotiation, templates, working hours and channel adapters."""
    _install(session)
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_application(session: nox.Session) -> None:
    """Command handlers, fan-out and auto-close against the in-memory providers."""
    _install(session)
    session.run("pytest", "-m", "application", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_api(session: nox.Session) -> None:
    _install(session)
    session.run("pytest", "-m", "integration", *session.posargs)
