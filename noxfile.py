import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]
LATEST = PYTHON_VERSIONS[-1]

# Poetry's wheel cache may hold a psycopg2 build for another interpreter
_REBUILD = ["psycopg2-binary"]


def _install(session: nox.Session, *extras: str) -> None:
    args = ["poetry", "install"]
    args += [f"--extras={extra}" for extra in extras] if extras else ["--all-extras"]
    session.run(*args, external=True)
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_REBUILD)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Full suite on every supported Python."""
    _install(session, "test")
    session.run("pytest", *session.posargs)


@nox.session(python=LATEST)
@nox.parametrize("layer", ["domain", "application", "integration", "bdd"])
def layer(session: nox.Session, layer: str) -> None:
    """One test layer, selected by its marker."""
    _install(session, "test")
    session.run("pytest", "-m", layer, *session.posargs)


@nox.session(python=LATEST)
def loadtest(session: nox.Session) -> None:
    """Headless Locust run against a live API; pass ``--host`` after ``--``."""
    _install(session, "loadtest")
    session.run(
        "locust",
        "-f",
        "loadtests/locustfile.py",
        "--headless",
        "--users=20",
        "--spawn-rate=5",
        "--run-time=1m",
        *session.posargs,
    )
