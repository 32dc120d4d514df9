import os
import shutil
import subprocess

import pytest


def _docker_available() -> bool:
    if not shutil.which("docker"):
        return False
    try:
        info = subprocess.run(["docker", "info"], capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError):
        return False
    return info.returncode == 0


@pytest.fixture(scope="session")
def postgres_url():
    """Throwaway Postgres started with testcontainers; skips when Docker is unreachable."""
    if os.getenv("SKIP_DOCKER_TESTS") == "1":
        pytest.skip("SKIP_DOCKER_TESTS=1")
    if not _docker_available():
        pytest.skip("Docker daemon is not available; skipping e2e tests that require containers")

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16-alpine", driver="psycopg2") as pg:
        yield pg.get_connection_url()
