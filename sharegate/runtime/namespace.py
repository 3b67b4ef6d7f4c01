from .workflows import OwnerNamespace, ResourceBasedSelector, TagBasedSelector


def derive_owner_namespace(
    owner_domain_id: str,
    selector: ResourceBasedSelector | TagBasedSelector,
) -> OwnerNamespace:
    """Split the central catalog name `{domainId}_{database}` of the shared resource.

    A bare database name is taken to live in `owner_domain_id`'s namespace.
    Tag-based selectors address no single database.
    """
    if isinstance(selector, TagBasedSelector):
        return OwnerNamespace(producer_domain_id=owner_domain_id)

    if isinstance(selector, ResourceBasedSelector):
        central = selector.database
        if not central.startswith(f"{owner_domain_id}_"):
            central = f"{owner_domain_id}_{central}"
        producer, raw = central.split("_", 1)
        return OwnerNamespace(
            producer_domain_id=producer,
            raw_database=raw,
            central_database=central,
        )

    raise ValueError(f"Unsupported resource selector: {selector!r}")
