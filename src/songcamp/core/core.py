from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC
from typing import TYPE_CHECKING, Any, cast

from pymongo import AsyncMongoClient

from songcamp.config import Config
from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.collaborator.mongo import MongoCollaborator

if TYPE_CHECKING:
    from songcamp.core.modules.member.service import MemberService
    from songcamp.core.modules.notification.service import NotificationService


class Service:
    """Base class for services working against the remote collaborator."""

    def __init__(self, collaborator: Collaborator) -> None:
        self.collaborator = collaborator
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

    member: MemberService
    notification: NotificationService

    def __init__(self, collaborator: Collaborator) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("member", "songcamp.core.modules.member.service", "MemberService"),
            ("notification", "songcamp.core.modules.notification.service", "NotificationService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(collaborator)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, the remote collaborator, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]]
    collaborator: MongoCollaborator
    services: Services

    def __init__(self, config: Config) -> None:
        self.config = config
        self.mongo_client = AsyncMongoClient(
            config.database_url, uuidRepresentation="standard", tz_aware=True, tzinfo=UTC
        )
        self.collaborator = MongoCollaborator(self.mongo_client)
        self.services = Services(self.collaborator)
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
        await self.collaborator.ensure_indexes(self.config.dataset_id)
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        await self.mongo_client.aclose()
