"""SQLAlchemy implementations of the collaborator protocols."""

from content_intel.stores.clusters import SqlClusterStore
from content_intel.stores.content import SqlContentSource
from content_intel.stores.gazetteer import SqlGazetteer
from content_intel.stores.mentions import SqlMentionStore
from content_intel.stores.relations import SqlRelationStore

__all__ = [
    "SqlClusterStore",
    "SqlContentSource",
    "SqlGazetteer",
    "SqlMentionStore",
    "SqlRelationStore",
]
