# ============================================================
# Business/domain entities
# ============================================================
import base64
import enum
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from sharegate.domain.classification import Tag

TABLE_NAME = "share_mappings"


class ShareStatus(str, enum.Enum):
    PENDING = "pending"
    SHARED = "shared"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ShareMapping:
    domain_id: str
    resource_mapping_key: str
    status: ShareStatus
    updated_at: datetime | None = None

    @property
    def target_domain_id(self) -> str:
        return self.resource_mapping_key.rsplit("#", 1)[1]


@dataclass(frozen=True)
class ConsumerStatus:
    domain_id: str
    status: ShareStatus | None


def resource_mapping_key(resource: str, target_domain_id: str) -> str:
    """`{resource}#{targetDomainId}` for resource-based sharing."""
    return f"{resource}#{target_domain_id}"


def tag_set_fingerprint(tags: Iterable[Tag]) -> str:
    """Order-independent fingerprint of a tag set: `tags-{base64(json)}`."""
    canonical = sorted(
        ({"TagKey": t.key, "TagValues": sorted(t.values)} for t in tags),
        key=lambda row: row["TagKey"],
    )
    encoded = base64.b64encode(
        json.dumps(canonical, separators=(",", ":")).encode("utf-8")
    ).decode("ascii")
    return f"tags-{encoded}"


def tag_mapping_key(tags: Iterable[Tag], target_domain_id: str) -> str:
    return f"{tag_set_fingerprint(tags)}#{target_domain_id}"
