from __future__ import annotations

from typing import Iterable

from .entities import Classification, Tag

DEFAULT_TAG_KEY = "confidentiality"
DEFAULT_SENSITIVE_VALUE = "sensitive"


def requires_approval(
    tags: Iterable[Tag],
    *,
    tag_key: str = DEFAULT_TAG_KEY,
    sensitive_value: str = DEFAULT_SENSITIVE_VALUE,
) -> bool:
    """True iff any tag has key `confidentiality` and value `sensitive`."""
    return any(t.key == tag_key and sensitive_value in t.values for t in tags)


class ClassificationOracle:
    """Decides whether sharing a classified resource needs the owner's approval."""

    def __init__(
        self,
        *,
        tag_key: str = DEFAULT_TAG_KEY,
        sensitive_value: str = DEFAULT_SENSITIVE_VALUE,
    ) -> None:
        self._tag_key = tag_key
        self._sensitive_value = sensitive_value

    def requires_approval(self, classification: Classification) -> bool:
        tags = classification.effective_tags(
            tag_key=self._tag_key,
            sensitive_value=self._sensitive_value,
        )
        return requires_approval(
            tags,
            tag_key=self._tag_key,
            sensitive_value=self._sensitive_value,
        )
