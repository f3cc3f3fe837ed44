"""
Shared test fixtures and helpers for the wirebind test suite.
"""

import logging
from typing import List

import pytest

from wirebind.application import Application
from wirebind.di.core import Container
from wirebind.routing.router import Router


class MarkerController:
    """
    Controller that appends its marker to a shared sequence and
    registers ``GET /<marker>``.
    """

    def __init__(self, marker: str, calls: List[str]):
        self.marker = marker
        self.calls = calls

    @property
    def label(self) -> str:
        return f"marker:{self.marker}"

    def register_routes(self, router: Router) -> None:
        self.calls.append(self.marker)
        router.get(f"/{self.marker}", lambda call: self.marker)


class FailingController:
    """Controller whose registration always raises."""

    def register_routes(self, router: Router) -> None:
        raise RuntimeError("registration exploded")


class PlainService:
    """Not a controller."""


@pytest.fixture
def calls() -> List[str]:
    return []


@pytest.fixture
def application() -> Application:
    return Application()


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def container(application) -> Container:
    """Container with the Application handle already bound."""
    container = Container()
    container.bind_instance(Application, application)
    return container


def bind_marker(container: Container, token: str, marker: str, calls: List[str], **kwargs):
    """Bind a MarkerController factory under a string token."""
    return container.bind_factory(
        token,
        lambda: MarkerController(marker, calls),
        scope=kwargs.pop("scope", "singleton"),
        capabilities=kwargs.pop("capabilities", ("controller",)),
    )


@pytest.fixture(autouse=True)
def reset_wirebind_logger():
    """CLI runs reconfigure the package logger; restore it after each test."""
    logger = logging.getLogger("wirebind")
    level = logger.level
    yield
    logger.setLevel(level)
