import copy
import logging
from typing import Any
from urllib.parse import quote, urljoin

from omnivolt.config import LaunchSpec
from omnivolt.host import LaunchRequest, PluginRpc

log = logging.getLogger(__name__)


def ensure_publish_diagnostics_capability(capabilities: Any) -> dict[str, Any]:
    """
    Returns a copy of the client capabilities which is guaranteed to contain a
    textDocument.publishDiagnostics entry (an empty one is added if absent).
    Some servers assume this capability to always be present.
    """
    result = copy.deepcopy(capabilities) if isinstance(capabilities, dict) else {}
    text_document = result.get("textDocument")
    if not isinstance(text_document, dict):
        text_document = {}
        result["textDocument"] = text_document
    if "publishDiagnostics" not in text_document:
        log.debug("Adding empty publishDiagnostics client capability")
        text_document["publishDiagnostics"] = {}
    return result


class LaunchBuilder:
    def __init__(self, rpc: PluginRpc, base_uri: str | None = None, normalize_publish_diagnostics: bool = False):
        """
        :param rpc: the host interface through which the server is started
        :param base_uri: the URI of the plugin's working directory, against which relative server locations are resolved;
            only required for launching the managed server
        :param normalize_publish_diagnostics: whether to pass on client capabilities with a guaranteed
            publishDiagnostics entry
        """
        self.rpc = rpc
        if base_uri is not None and not base_uri.endswith("/"):
            base_uri += "/"
        self.base_uri = base_uri
        self.normalize_publish_diagnostics = normalize_publish_diagnostics

    def resolve_server_uri(self, location: str) -> str:
        """
        :param location: the server location relative to the working directory (with '/' separators)
        :return: the absolute URI of the server executable
        """
        if self.base_uri is None:
            raise ValueError("No base URI given for resolving the server location")
        return urljoin(self.base_uri, quote(location))

    def build(
        self,
        spec: LaunchSpec,
        initialization_options: Any,
        location: str | None = None,
        capabilities: Any = None,
    ) -> LaunchRequest:
        if spec.server_path_override is not None:
            server_uri = spec.server_path_override
        elif location is not None:
            server_uri = self.resolve_server_uri(location)
        else:
            raise ValueError("A server location is required if the launch spec does not override the server path")

        return LaunchRequest(
            server_uri=server_uri,
            server_args=spec.server_args,
            document_selector=spec.document_selector,
            initialization_options=initialization_options,
            capabilities=ensure_publish_diagnostics_capability(capabilities) if self.normalize_publish_diagnostics else None,
        )

    def launch(
        self,
        spec: LaunchSpec,
        initialization_options: Any,
        location: str | None = None,
        capabilities: Any = None,
    ) -> LaunchRequest:
        """
        Builds the launch request and hands it to the host, which spawns the server process.
        """
        request = self.build(spec, initialization_options, location=location, capabilities=capabilities)
        log.info("Starting language server %s with arguments %s", request.server_uri, list(request.server_args))
        self.rpc.start_lsp(request)
        return request
