import structlog

from songcamp.core.core import Service
from songcamp.core.modules.collaborator.base import Collaborator
from songcamp.core.modules.member.models import Member
from songcamp.errors import NotFoundError
from songcamp.utils import same_identity

logger = structlog.get_logger(__name__)


class MemberService(Service):
    """Caches community members per dataset; they are the mention candidates."""

    def __init__(self, collaborator: Collaborator) -> None:
        super().__init__(collaborator)
        self._members: dict[str, list[Member]] = {}

    def get_members(self, dataset_id: str) -> list[Member]:
        """Get cached members in source order."""
        return list(self._members.get(dataset_id, []))

    def get_member_by_email(self, dataset_id: str, email: str) -> Member:
        member = next((m for m in self._members.get(dataset_id, []) if same_identity(m.email, email)), None)
        if member is None:
            raise NotFoundError(f"Member '{email}' not found")
        return member

    async def update_members_cache(self, dataset_id: str) -> list[Member]:
        """Reload the members of a dataset from the collaborator."""
        members = await self.collaborator.fetch_members(dataset_id)
        self._members[dataset_id] = members
        return self.get_members(dataset_id)

    async def on_start(self) -> None:
        dataset_id = self.core.config.dataset_id
        await self.update_members_cache(dataset_id)
        logger.debug("member_service_started", dataset_id=dataset_id, member_count=len(self._members[dataset_id]))
