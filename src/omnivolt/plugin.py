"""
The plugin's request handling: on the editor's initialize request, the server invocation is resolved
(provisioning the managed OmniSharp installation if no server path is configured) and handed to the host.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sensai.util.logging import FileLoggerContext

from omnivolt.config import LaunchSpec, resolve_launch_spec
from omnivolt.constants import INITIALIZE_METHOD
from omnivolt.host import LaunchRequest, MessageType, PluginRpc, VoltEnvironment
from omnivolt.launch import LaunchBuilder
from omnivolt.platform_utils import resolve_platform
from omnivolt.provisioner import ReleaseProvisioner
from omnivolt.settings import OmniVoltSettings

log = logging.getLogger(__name__)


def _as_mapping(params: Any) -> Mapping[str, Any]:
    return params if isinstance(params, Mapping) else {}


class OmniSharpPlugin:
    def __init__(
        self,
        rpc: PluginRpc,
        environment: VoltEnvironment,
        settings: OmniVoltSettings | None = None,
        provisioner: ReleaseProvisioner | None = None,
    ):
        self.rpc = rpc
        self.environment = environment
        self.settings = settings if settings is not None else OmniVoltSettings()
        self._provisioner = provisioner

    @property
    def provisioner(self) -> ReleaseProvisioner:
        if self._provisioner is None:
            self._provisioner = ReleaseProvisioner(self.settings)
        return self._provisioner

    def handle_request(self, request_id: int, method: str, params: Any) -> None:
        if method != INITIALIZE_METHOD:
            log.debug("Ignoring request %s (%s)", request_id, method)
            return

        # options are resolved before the log file is opened: configuration errors
        # and user-specified servers leave the working directory untouched
        try:
            spec = resolve_launch_spec(_as_mapping(params).get("initializationOptions"))
        except Exception as e:
            self._report_error(request_id, e)
            return

        log_to_file = self.settings.log_to_file and not spec.has_override
        with FileLoggerContext(self.settings.log_file, append=True, enabled=log_to_file):
            try:
                self._start(spec, params)
            except Exception as e:
                self._report_error(request_id, e)

    def _report_error(self, request_id: int, e: Exception) -> None:
        log.error("Handling of initialize request %s failed: %s", request_id, e, exc_info=e)
        self.rpc.window_show_message(MessageType.ERROR, f"plugin returned with error: {e}")

    def initialize(self, params: Any) -> LaunchRequest | None:
        """
        Resolves and starts the language server for the given initialize request parameters.

        :param params: the parameters of the initialize request
        :return: the request passed to the host, or None if no server is available for the host's architecture
        """
        return self._start(resolve_launch_spec(_as_mapping(params).get("initializationOptions")), params)

    def _start(self, spec: LaunchSpec, params: Any) -> LaunchRequest | None:
        params = _as_mapping(params)
        initialization_options = params.get("initializationOptions")
        capabilities = params.get("capabilities")
        normalize = self.settings.normalize_publish_diagnostics

        if spec.has_override:
            return LaunchBuilder(self.rpc, normalize_publish_diagnostics=normalize).launch(
                spec, initialization_options, capabilities=capabilities
            )

        platform = resolve_platform(self.environment.operating_system(), self.environment.architecture())
        if platform is None:
            return None

        location = self.provisioner.provision(platform)
        builder = LaunchBuilder(self.rpc, self.environment.uri(), normalize_publish_diagnostics=normalize)
        return builder.launch(spec, initialization_options, location=location, capabilities=capabilities)
