import pytest
from pydantic import ValidationError

from sharegate.domain.classification import Classification, ClassificationOracle, Tag, requires_approval


def test_sensitive_confidentiality_tag_requires_approval() -> None:
    assert requires_approval([Tag(key="confidentiality", values=("sensitive",))]) is True


@pytest.mark.parametrize(
    "tags",
    [
        [],
        [Tag(key="confidentiality", values=("non-sensitive",))],
        [Tag(key="classification", values=("sensitive",))],
        [Tag(key="Confidentiality", values=("sensitive",))],
    ],
)
def test_other_tag_sets_do_not_require_approval(tags) -> None:
    assert requires_approval(tags) is False


def test_any_value_of_a_multi_valued_tag_counts() -> None:
    tags = [Tag(key="region", values=("eu",)), Tag(key="confidentiality", values=("internal", "sensitive"))]

    assert requires_approval(tags) is True


def test_pii_flag_implies_sensitive() -> None:
    oracle = ClassificationOracle()

    assert oracle.requires_approval(Classification(pii_flag=True)) is True
    assert oracle.requires_approval(Classification(pii_flag=False)) is False


def test_oracle_honours_configured_tag_vocabulary() -> None:
    oracle = ClassificationOracle(tag_key="sensitivity", sensitive_value="high")

    assert oracle.requires_approval(Classification(tags=[Tag(key="sensitivity", values=("high",))])) is True
    assert oracle.requires_approval(Classification(tags=[Tag(key="confidentiality", values=("sensitive",))])) is False


def test_tag_needs_at_least_one_value() -> None:
    with pytest.raises(ValidationError):
        Tag(key="confidentiality", values=())
