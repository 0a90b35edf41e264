# KBSync Source Matcher
# Decide whether a stored entity belongs to the running source

import re
from typing import Optional

from kbsync.model import ExternalIdentifiable


def is_from_same_source(
    item: ExternalIdentifiable,
    source_id: Optional[str],
    external_id_prefix: Optional[str],
) -> bool:
    """
    Check if a stored item was produced by the running source.

    Priority: matching source id if configured, else matching external id
    prefix if configured, else any external id at all.
    """
    if source_id:
        return item.source_id == source_id

    if external_id_prefix:
        return bool(item.external_id) and item.external_id.startswith(external_id_prefix)

    return bool(item.external_id)


def add_external_id_prefix(external_id: Optional[str], external_id_prefix: Optional[str]) -> Optional[str]:
    """Prefix an external id when a prefix is configured."""
    if external_id_prefix and external_id is not None:
        return external_id_prefix + external_id
    return external_id


def remove_external_id_prefix(external_id: str, external_id_prefix: Optional[str]) -> str:
    """Strip a configured prefix from an external id."""
    if external_id_prefix:
        return re.sub("^" + re.escape(external_id_prefix), "", external_id)
    return external_id
