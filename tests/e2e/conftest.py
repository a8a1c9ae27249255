"""E2E test fixtures for Playwright.

The pytest-playwright plugin provides ``page``, ``context`` and ``browser``.
Override base_url with --base-url on the CLI:
    pytest -m e2e --base-url http://localhost:8000

Throwaway users are created and removed through ``manage.py shell`` so the
tests only talk to the running server over HTTP.
"""

from __future__ import annotations

import subprocess
from typing import Generator
from uuid import uuid4

import pytest
from playwright.sync_api import APIRequestContext, Playwright

USER_MODEL = "from django.contrib.auth import get_user_model; User = get_user_model(); "


@pytest.fixture(scope="session")
def base_url(request) -> str:
    return request.config.getoption("base_url") or "http://localhost:8000"


@pytest.fixture(autouse=True)
def _use_db() -> None:
    """E2E tests hit the server over HTTP and never touch the test database."""


@pytest.fixture(scope="session")
def api_request_context(
    playwright: Playwright, base_url: str
) -> Generator[APIRequestContext, None, None]:
    """Playwright API context for direct HTTP calls."""
    context = playwright.request.new_context(base_url=base_url)
    yield context
    context.dispose()


def _shell(command: str) -> None:
    subprocess.run(
        ["python", "src/manage.py", "shell", "-c", command],
        check=True,
        capture_output=True,
        text=True,
    )


@pytest.fixture()
def auth_credentials() -> Generator[tuple[str, str], None, None]:
    """Create a throwaway customer with a delivery address."""
    username = f"e2e_customer_{uuid4().hex[:8]}"
    password = "testpass123"
    _shell(
        USER_MODEL
        + "from modules.customers.models import Address; "
        + f"user = User.objects.create_user(username={username!r}, password={password!r}); "
        + "Address.objects.create(user=user, address_line1='1 Test Street', "
        + "city='Bengaluru', state='Karnataka', postal_code='560001')"
    )
    try:
        yield username, password
    finally:
        _shell(USER_MODEL + f"User.objects.filter(username={username!r}).delete()")


@pytest.fixture()
def auth_token(api_request_context, auth_credentials) -> str:
    """Obtain a JWT access token for the throwaway customer."""
    username, password = auth_credentials
    response = api_request_context.post(
        "/api/v1/auth/token/",
        data={"username": username, "password": password},
    )
    assert response.status == 200
    return response.json()["access"]


@pytest.fixture()
def auth_headers(auth_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_token}"}
