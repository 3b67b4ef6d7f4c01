from dataclasses import dataclass
from typing import Protocol

from .entities import Classification

TABLE_WILDCARD = "*"


@dataclass(frozen=True)
class ResourceKey:
    database: str
    table: str = TABLE_WILDCARD

    @property
    def is_wildcard(self) -> bool:
        return self.table == TABLE_WILDCARD


class CatalogClient(Protocol):
    async def get_classification(
        self,
        owner_domain_id: str,
        resource: ResourceKey,
    ) -> Classification:
        """Return tags, PII flag and owning domain of a catalog resource.

        Raises:
            ResourceNotFoundError: If the resource or its owning domain cannot be resolved.
            ClassificationLookupFailure: If the catalog cannot be reached.
        """
        ...
