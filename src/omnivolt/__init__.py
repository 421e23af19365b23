from omnivolt.config import DocumentFilter, LaunchSpec, resolve_launch_spec
from omnivolt.host import LaunchRequest, LocalVoltEnvironment, MessageType, PluginRpc, VoltEnvironment
from omnivolt.launch import LaunchBuilder
from omnivolt.platform_utils import Architecture, OperatingSystem, PlatformTag, resolve_platform
from omnivolt.plugin import OmniSharpPlugin
from omnivolt.provisioner import ReleaseProvisioner
from omnivolt.release_client import ReleaseClient, ReleaseMetadata
from omnivolt.settings import OmniVoltSettings
from omnivolt.version_store import VersionStore

__version__ = "0.1.0"

__all__ = [
    "Architecture",
    "DocumentFilter",
    "LaunchBuilder",
    "LaunchRequest",
    "LaunchSpec",
    "LocalVoltEnvironment",
    "MessageType",
    "OmniSharpPlugin",
    "OmniVoltSettings",
    "OperatingSystem",
    "PlatformTag",
    "PluginRpc",
    "ReleaseClient",
    "ReleaseMetadata",
    "ReleaseProvisioner",
    "VersionStore",
    "VoltEnvironment",
    "resolve_launch_spec",
    "resolve_platform",
]
