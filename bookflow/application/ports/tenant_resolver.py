from __future__ import annotations

from abc import ABC, abstractmethod

from bookflow.domain.entities.tenant import Tenant


class TenantResolverPort(ABC):
    @abstractmethod
    async def resolve_by_slug(self, slug: str) -> Tenant:
        """Resolve an active tenant. Raises NotFoundError when missing."""
        raise NotImplementedError
