"""
Interfaces to the plugin host: environment queries, the "start language server" sink and the
message channel through which errors are shown to the user.
"""

import platform
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

from overrides import override

from omnivolt.config import DocumentFilter


class MessageType(IntEnum):
    """LSP message types of window/showMessage"""

    ERROR = 1
    WARNING = 2
    INFO = 3
    LOG = 4


@dataclass(frozen=True)
class LaunchRequest:
    """
    Everything the host needs for spawning the language server process.
    """

    server_uri: str
    server_args: tuple[str, ...]
    document_selector: tuple[DocumentFilter, ...]
    initialization_options: Any
    """
    the editor's initialization options, passed through to the server unchanged
    """
    capabilities: dict[str, Any] | None = None
    """
    the normalised client capabilities; only set if capability normalisation is enabled
    """

    def to_json(self) -> dict[str, Any]:
        result = {
            "serverUri": self.server_uri,
            "serverArgs": list(self.server_args),
            "documentSelector": [f.to_json() for f in self.document_selector],
            "initializationOptions": self.initialization_options,
        }
        if self.capabilities is not None:
            result["capabilities"] = self.capabilities
        return result


class VoltEnvironment(ABC):
    @abstractmethod
    def operating_system(self) -> str:
        """
        :return: the operating system family, e.g. "linux", "macos" or "windows"
        """

    @abstractmethod
    def architecture(self) -> str:
        """
        :return: the CPU architecture, e.g. "x86_64", "aarch64" or "x86"
        """

    @abstractmethod
    def uri(self) -> str:
        """
        :return: the URI of the plugin's working directory
        """


class PluginRpc(ABC):
    @abstractmethod
    def start_lsp(self, request: LaunchRequest) -> None:
        pass

    @abstractmethod
    def window_show_message(self, message_type: MessageType, message: str) -> None:
        pass


class LocalVoltEnvironment(VoltEnvironment):
    """
    Environment of the running Python process, reported with the identifiers a plugin host would use.
    """

    _SYSTEMS = {"linux": "linux", "darwin": "macos", "windows": "windows"}
    _MACHINES = {
        "x86_64": "x86_64",
        "amd64": "x86_64",
        "aarch64": "aarch64",
        "arm64": "aarch64",
        "x86": "x86",
        "i386": "x86",
        "i686": "x86",
    }

    def __init__(self, working_dir: str):
        self.working_dir = working_dir

    @override
    def operating_system(self) -> str:
        system = platform.system().lower()
        return self._SYSTEMS.get(system, system)

    @override
    def architecture(self) -> str:
        machine = platform.machine().lower()
        return self._MACHINES.get(machine, machine)

    @override
    def uri(self) -> str:
        return Path(self.working_dir).resolve().as_uri() + "/"
