"""
Auth handlers that hash passwords or send email must be plain functions so
FastAPI runs them in its threadpool instead of on the event loop.
"""

from __future__ import annotations

import inspect

import pytest

from saveit.api.routes import auth as auth_routes


@pytest.mark.parametrize(
    "handler",
    ["signup", "verify_otp", "resend_otp", "login", "forgot_password", "reset_password"],
)
def test_blocking_handlers_are_sync(handler):
    assert not inspect.iscoroutinefunction(getattr(auth_routes, handler))


def test_blocking_handlers_run_in_threadpool():
    """The route wiring keeps the sync handler, not a coroutine wrapper."""
    routes = {route.path: route for route in auth_routes.router.routes}

    for path in ("/api/auth/signup", "/api/auth/login", "/api/auth/forgot-password"):
        assert not inspect.iscoroutinefunction(routes[path].endpoint)
