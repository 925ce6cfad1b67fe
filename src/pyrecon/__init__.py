"""pyrecon - Vehicle reconditioning record, inspection and lifecycle engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrecon")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrecon._constants import BASELINE_SECTION_KEYS, CollectionKey
from pyrecon.audit import AuditLog
from pyrecon.broadcast import ChangeBroadcaster
from pyrecon.catalog import load_catalog, parse_catalog
from pyrecon.config import MqttSettings, ReconConfig
from pyrecon.engine import ReconEngine
from pyrecon.exceptions import (
    ReconConfigError,
    ReconError,
    ReconInvalidTransitionError,
    ReconMissingActorError,
    ReconNotFoundError,
    ReconSerializationError,
    ReconStorageError,
)
from pyrecon.lifecycle import LifecycleManager
from pyrecon.models import LocationEntry, SectionStatus, TeamNote, VehicleRecord
from pyrecon.state.events import ChangeNotification
from pyrecon.state.policy import LifecycleState
from pyrecon.state.store import RecordStore
from pyrecon.status import StatusTracker
from pyrecon.storage import CollectionStore, InMemoryCollectionStore, SqliteCollectionStore

__all__ = [
    "__version__",
    "AuditLog",
    "BASELINE_SECTION_KEYS",
    "ChangeBroadcaster",
    "ChangeNotification",
    "CollectionKey",
    "CollectionStore",
    "InMemoryCollectionStore",
    "LifecycleManager",
    "LifecycleState",
    "LocationEntry",
    "MqttSettings",
    "ReconConfig",
    "ReconConfigError",
    "ReconEngine",
    "ReconError",
    "ReconInvalidTransitionError",
    "ReconMissingActorError",
    "ReconNotFoundError",
    "ReconSerializationError",
    "ReconStorageError",
    "RecordStore",
    "SectionStatus",
    "SqliteCollectionStore",
    "StatusTracker",
    "TeamNote",
    "VehicleRecord",
    "load_catalog",
    "parse_catalog",
]
