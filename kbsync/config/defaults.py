# KBSync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "source": {
        "type": "file",
        "path": "~/kbsync/source.yaml",
        "page_size": 50,
        "fetch_categories": True,
        "fetch_labels": True,
        "fetch_articles": True,
    },
    "destination": {
        "type": "file",
        "path": "~/kbsync/knowledge-base.json",
        "knowledge_base_id": "default",
    },
    "sync": {
        "protected_fields": None,
        "compare_mode": "MODIFICATION_DATE",
        "external_id_prefix": None,
        "source_id": None,
        "allow_prune_all_entities": False,
        "name_conflict_suffix": None,
        "bulk_delete_documents": False,
        "kill_after_long_running_seconds": None,
    },
    "checkpoint": {
        "enabled": True,
        "path": "~/.config/kbsync/context.json",
    },
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def get_default_config() -> dict[str, Any]:
    """Deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# KBSync - Knowledge Base Sync Configuration
#
# One-way synchronization of categories, labels and documents from a source
# into a destination knowledge base. Only the delta is uploaded.
#
# Compare modes (sync.compare_mode):
#   - MODIFICATION_DATE: skip documents whose version marker did not change
#   - CONTENT: compare the full normalized content
#   - NONE: treat every existing document as changed
#
# Safety:
#   - allow_prune_all_entities: a run that would delete every entity of this
#     source is refused unless this is true
#   - protected_fields: comma separated paths kept from the destination,
#     e.g. "published.alternatives"
#   - bulk_delete_documents: remove obsolete documents in batches of 100
#     instead of with the sync payload
#
# Every sync setting can be overridden with KBSYNC_<SETTING>, e.g.
#   KBSYNC_ALLOW_PRUNE_ALL_ENTITIES=true

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
