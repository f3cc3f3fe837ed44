"""
Users sample: repository, typed routes and a controller.

The controller is never registered by hand; binding it in the mapper
is enough for bootstrap to find it and attach its routes.

Run it with:

    wb serve --app wirebind.samples.users:create_app
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from ..application import Application, Call, DefaultHeaders, create_application
from ..config import AppConfig
from ..controller.base import ContainerController, inject
from ..di.builder import ContainerBuilder
from ..response import NotFound, Response
from ..routing.locations import TypedRoute, location
from ..routing.router import Router


@dataclass(frozen=True)
class User:
    name: str


class UserRepository(Protocol):
    """Operations on the users of the system."""

    def list(self) -> List[User]:
        ...

    def get(self, name: str) -> Optional[User]:
        ...


class InMemoryUserRepository:
    """Fake in-memory repository for demo purposes."""

    def __init__(self, users: Optional[List[User]] = None):
        initial = users if users is not None else [User("test"), User("demo")]
        self._users_by_name: Dict[str, User] = {user.name: user for user in initial}

    def list(self) -> List[User]:
        return list(self._users_by_name.values())

    def get(self, name: str) -> Optional[User]:
        return self._users_by_name.get(name)


@location("/users")
@dataclass(frozen=True)
class UsersRoute(TypedRoute):
    """Listing of all users."""


@location("/users/{name}")
@dataclass(frozen=True)
class UserRoute(TypedRoute):
    """A single user by name."""
    name: str


class UsersController(ContainerController):
    """Routes related to users."""

    repository = inject(UserRepository)

    def register_routes(self, router: Router) -> None:
        router.route(UsersRoute, self.list_users, name="users.list")
        router.route(UserRoute, self.show_user, name="users.show")

    def list_users(self, call: Call, route: UsersRoute) -> Response:
        return Response.json({
            "users": [
                {"name": user.name, "href": self.href(UserRoute(user.name))}
                for user in self.repository.list()
            ],
        })

    def show_user(self, call: Call, route: UserRoute) -> Response:
        user = self.repository.get(route.name)
        if user is None:
            return NotFound(f"User '{route.name}' not found")
        return Response.json({"name": user.name, "href": self.href(route)})


def advanced_application(builder: ContainerBuilder, application: Application) -> None:
    """Mapper for the users sample."""
    application.install(DefaultHeaders())

    builder.bind(UserRepository).singleton(InMemoryUserRepository)
    builder.bind(UsersController).singleton()


def create_app(config: Optional[AppConfig] = None) -> Application:
    return create_application(
        advanced_application,
        config=config or AppConfig(app_name="users-sample"),
    )
