
__all__ = [
    "StorageItemModel",
    "ExtensionManifest",
    "ExtensionState",
    "InstallationRecord",
]

from .storage import StorageItemModel
from .extension import ExtensionManifest, ExtensionState, InstallationRecord
