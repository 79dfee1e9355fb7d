from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from numbervault.config import Config

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from numbervault.core.modules.access.service import AccessService  # noqa: PLC0415
    from numbervault.core.modules.counter.service import CounterService  # noqa: PLC0415
    from numbervault.core.modules.mail.service import MailService  # noqa: PLC0415
    from numbervault.core.modules.number.service import NumberService  # noqa: PLC0415
    from numbervault.core.modules.session.service import SessionService  # noqa: PLC0415
    from numbervault.core.modules.user.service import UserService  # noqa: PLC0415
    from numbervault.core.modules.verification.service import VerificationService  # noqa: PLC0415

    user: UserService
    session: SessionService
    access: AccessService
    mail: MailService
    counter: CounterService
    number: NumberService
    verification: VerificationService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - mail must be ready before codes are issued
        service_configs = [
            ("user", "numbervault.core.modules.user.service", "UserService"),
            ("session", "numbervault.core.modules.session.service", "SessionService"),
            ("access", "numbervault.core.modules.access.service", "AccessService"),
            ("mail", "numbervault.core.modules.mail.service", "MailService"),
            ("counter", "numbervault.core.modules.counter.service", "CounterService"),
            ("number", "numbervault.core.modules.number.service", "NumberService"),
            ("verification", "numbervault.core.modules.verification.service", "VerificationService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop services in reverse startup order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config) -> None:
        """Initialize core with config, MongoDB, and auto-register services."""
        self.config = config
        self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
        self.database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        self.services = Services(self.database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Verify the MongoDB connection, then start all services.

        A failed ping propagates: the process must not serve traffic without its store.
        """
        await self.database.command("ping")
        logger.info("database_connected", database=self.database.name)
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
