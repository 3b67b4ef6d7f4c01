from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Tag(BaseModel):
    """A classification tag attached to a catalog resource (key plus one or more values)."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1)
    values: tuple[str, ...] = Field(min_length=1)


class Classification(BaseModel):
    """Catalog classification of a resource, resolved to its owning domain."""

    tags: list[Tag] = Field(default_factory=list)
    pii_flag: bool = False
    owner_domain_id: str | None = None

    def effective_tags(self, *, tag_key: str, sensitive_value: str) -> list[Tag]:
        """Tags to classify on. A PII flag implies the sensitive confidentiality tag."""
        if not self.pii_flag:
            return list(self.tags)
        return [*self.tags, Tag(key=tag_key, values=(sensitive_value,))]
