import logging
from dataclasses import dataclass
from enum import Enum

from omnivolt import constants
from omnivolt.exceptions import UnsupportedPlatformError

log = logging.getLogger(__name__)


class OperatingSystem(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"

    def is_windows(self) -> bool:
        return self == OperatingSystem.WINDOWS

    @property
    def release_name(self) -> str:
        """The name used for this operating system in OmniSharp's release asset names."""
        match self:
            case OperatingSystem.WINDOWS:
                return "win"
            case OperatingSystem.LINUX:
                return "linux"
            case OperatingSystem.MACOS:
                return "osx"
            case _:
                raise ValueError(f"Unhandled operating system: {self}")


class Architecture(str, Enum):
    X64 = "x64"
    ARM64 = "arm64"
    X86 = "x86"


_ARCHITECTURES = {
    "x86_64": Architecture.X64,
    "aarch64": Architecture.ARM64,
    "x86": Architecture.X86,
}


@dataclass(frozen=True)
class PlatformTag:
    os: OperatingSystem
    arch: Architecture

    def __str__(self) -> str:
        return f"{self.os.value}-{self.arch.value}"

    def binary_name(self, base_name: str = constants.BINARY_BASE_NAME) -> str:
        return f"{base_name}.exe" if self.os.is_windows() else base_name

    def archive_name(self) -> str:
        """
        :return: the file name of the release archive for this platform, used both for the download and
            for the local copy
        """
        return f"omnisharp-{self.os.release_name}-{self.arch.value}-{constants.TARGET_FRAMEWORK}.zip"


def resolve_platform(os_name: str, arch_name: str) -> PlatformTag | None:
    """
    Maps the environment's operating system and CPU architecture identifiers to a platform tag.

    :param os_name: the operating system reported by the host (``macos``, ``linux`` or ``windows``)
    :param arch_name: the CPU architecture reported by the host (``x86_64``, ``aarch64`` or ``x86``)
    :return: the platform tag, or None if no server build exists for the architecture
    """
    arch = _ARCHITECTURES.get(arch_name)
    if arch is None:
        log.info("No OmniSharp build available for architecture %r; not starting a language server", arch_name)
        return None
    try:
        os_ = OperatingSystem(os_name)
    except ValueError:
        raise UnsupportedPlatformError(os_name) from None
    return PlatformTag(os=os_, arch=arch)
