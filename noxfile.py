import nox

nox.options.sessions = ["lint", "format", "typecheck", "tests"]


@nox.session
def lint(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("ruff", "check", "src", "tests")


@nox.session
def format(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("ruff", "format", "src", "tests")


@nox.session
def typecheck(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("mypy", "--install-types", "--non-interactive", "src")


@nox.session
def tests(session: nox.Session) -> None:
    session.install("-e", ".[dev]")
    session.run("pytest", "--cov=insider_alerts", "--cov-report=term-missing")


@nox.session
def live(session: nox.Session) -> None:
    """Network tests against SEC and Reddit; needs SEC_USER_AGENT."""
    session.install("-e", ".[dev]")
    session.run("pytest", "-m", "live", *session.posargs)
