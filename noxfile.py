"""Nox sessions for multi-environment testing and quality assurance."""

import nox


@nox.session(python=["3.11", "3.12", "3.13"])
def tests(session: nox.Session) -> None:
    """Run test suite with coverage reporting.

    Args:
        session: The nox session object.
    """
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "--cov=learnquest_client",
        "--cov-report=term-missing:skip-covered",
        "--cov-report=html",
        "--cov-fail-under=80",
        *session.posargs,
    )


@nox.session(python=["3.11"])
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(python=["3.11"])
def typecheck(session: nox.Session) -> None:
    """Run basedpyright type checking."""
    session.install("-e", ".[test]", "basedpyright")
    session.run("basedpyright")


@nox.session(python=["3.11"])
def format(session: nox.Session) -> None:
    """Auto-format code with ruff."""
    session.install("ruff")
    session.run("ruff", "check", ".", "--fix")
    session.run("ruff", "format", ".")


@nox.session(python=False)
def check_layering(session: nox.Session) -> None:
    """Check that transport modules don't depend on domain layers.

    Enforces the architectural rule that types/, utils/, core/ and api/
    never import models/, facades/ or realtime/.
    """
    session.run("python3", "scripts/check_layering.py", external=True)
