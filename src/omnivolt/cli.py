import json
import os
import sys
from typing import Any

import click
from overrides import override
from sensai.util import logging

from omnivolt.constants import INITIALIZE_METHOD, OMNIVOLT_LOG_FORMAT
from omnivolt.exceptions import OmniVoltException
from omnivolt.host import LaunchRequest, LocalVoltEnvironment, MessageType, PluginRpc
from omnivolt.platform_utils import resolve_platform
from omnivolt.plugin import OmniSharpPlugin
from omnivolt.provisioner import ReleaseProvisioner
from omnivolt.settings import OmniVoltSettings
from omnivolt.version_store import VersionStore

log = logging.getLogger(__name__)

_MAX_CONTENT_WIDTH = 100
_LOG_LEVELS = click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


class EchoPluginRpc(PluginRpc):
    """
    Stands in for the plugin host: prints the launch request as JSON instead of spawning the server.
    """

    def __init__(self) -> None:
        self.launch_requests: list[LaunchRequest] = []
        self.errors: list[str] = []

    @override
    def start_lsp(self, request: LaunchRequest) -> None:
        self.launch_requests.append(request)
        click.echo(json.dumps(request.to_json(), indent=2))

    @override
    def window_show_message(self, message_type: MessageType, message: str) -> None:
        if message_type == MessageType.ERROR:
            self.errors.append(message)
        click.echo(f"[{message_type.name}] {message}", err=True)


def _configure_logging(log_level: str) -> None:
    if not logging.is_enabled():
        logging.configure(format=OMNIVOLT_LOG_FORMAT, level=logging.getLevelNamesMapping()[log_level.upper()], stream=sys.stderr)


def _load_settings(settings_file: str | None, working_dir: str | None, log_level: str | None) -> OmniVoltSettings:
    try:
        if settings_file is not None:
            settings = OmniVoltSettings.from_yaml(settings_file, working_dir=working_dir, log_level=log_level)
        else:
            overrides = {k: v for k, v in {"working_dir": working_dir, "log_level": log_level}.items() if v is not None}
            settings = OmniVoltSettings(**overrides)
    except OmniVoltException as e:
        raise click.ClickException(str(e)) from e
    _configure_logging(settings.log_level)
    return settings


def _read_initialization_options(options: str | None, options_file: str | None) -> Any:
    if options is not None and options_file is not None:
        raise click.UsageError("--options and --options-file are mutually exclusive")
    try:
        if options_file is not None:
            with open(options_file, encoding="utf-8") as f:
                return json.load(f)
        if options is not None:
            return json.loads(options)
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Could not read initialization options: {e}") from e
    return None


_working_dir_option = click.option(
    "--working-dir",
    type=click.Path(file_okay=False, dir_okay=True),
    default=None,
    help="The plugin working directory holding the managed server installation [default: current directory].",
)
_settings_option = click.option(
    "--settings", "settings_file", type=click.Path(exists=True, dir_okay=False), default=None, help="Path to a settings YAML file."
)
_log_level_option = click.option("--log-level", type=_LOG_LEVELS, default=None, help="Override the log level of the settings.")


class AutoRegisteringGroup(click.Group):
    """
    A click.Group subclass that automatically registers any click.Command
    attributes defined on the class into the group.
    """

    def __init__(self, name: str, help: str):
        super().__init__(name=name, help=help)
        for attr in dir(self.__class__):
            cmd = getattr(self.__class__, attr)
            if isinstance(cmd, click.Command):
                self.add_command(cmd)


class TopLevelCommands(AutoRegisteringGroup):
    """Root CLI group of omnivolt."""

    def __init__(self) -> None:
        super().__init__(
            name="omnivolt", help="Resolves, provisions and launches the OmniSharp language server. Run `<command> --help` for details."
        )

    @staticmethod
    @click.command(
        "launch",
        help="Handle an initialize request for the local machine and print the resulting launch request as JSON.",
        context_settings={"max_content_width": _MAX_CONTENT_WIDTH},
    )
    @click.option("--options", type=str, default=None, help="The editor's initialization options as a JSON string.")
    @click.option(
        "--options-file", type=click.Path(exists=True, dir_okay=False), default=None, help="JSON file with the initialization options."
    )
    @_working_dir_option
    @_settings_option
    @_log_level_option
    def launch(
        options: str | None, options_file: str | None, working_dir: str | None, settings_file: str | None, log_level: str | None
    ) -> None:
        settings = _load_settings(settings_file, working_dir, log_level)
        initialization_options = _read_initialization_options(options, options_file)
        rpc = EchoPluginRpc()
        plugin = OmniSharpPlugin(rpc, LocalVoltEnvironment(settings.working_dir), settings)
        plugin.handle_request(0, INITIALIZE_METHOD, {"initializationOptions": initialization_options, "capabilities": {}})
        if rpc.errors:
            sys.exit(1)
        if not rpc.launch_requests:
            click.echo("No OmniSharp build is available for this architecture; no server would be started.", err=True)

    @staticmethod
    @click.command(
        "provision",
        help="Install or update the managed OmniSharp server and print the path of its executable.",
        context_settings={"max_content_width": _MAX_CONTENT_WIDTH},
    )
    @_working_dir_option
    @_settings_option
    @_log_level_option
    def provision(working_dir: str | None, settings_file: str | None, log_level: str | None) -> None:
        settings = _load_settings(settings_file, working_dir, log_level)
        environment = LocalVoltEnvironment(settings.working_dir)
        try:
            platform = resolve_platform(environment.operating_system(), environment.architecture())
            if platform is None:
                click.echo(f"No OmniSharp build is available for architecture {environment.architecture()}.", err=True)
                return
            provisioner = ReleaseProvisioner(settings)
            provisioner.provision(platform)
        except OmniVoltException as e:
            raise click.ClickException(str(e)) from e
        click.echo(str(provisioner.binary_path(platform)))

    @staticmethod
    @click.command(
        "installed-version",
        help="Print the tag of the installed OmniSharp release.",
        context_settings={"max_content_width": _MAX_CONTENT_WIDTH},
    )
    @_working_dir_option
    @_settings_option
    def installed_version(working_dir: str | None, settings_file: str | None) -> None:
        settings = _load_settings(settings_file, working_dir, None)
        try:
            tag = VersionStore(settings.working_dir, settings.version_file_name).read()
        except OmniVoltException as e:
            raise click.ClickException(str(e)) from e
        click.echo(tag or "<none>")

    @staticmethod
    @click.command("platform", help="Print the platform tag of the local machine.", context_settings={"max_content_width": _MAX_CONTENT_WIDTH})
    def platform() -> None:
        environment = LocalVoltEnvironment(os.getcwd())
        try:
            platform_tag = resolve_platform(environment.operating_system(), environment.architecture())
        except OmniVoltException as e:
            raise click.ClickException(str(e)) from e
        click.echo(str(platform_tag) if platform_tag is not None else f"unsupported ({environment.architecture()})")


top_level = TopLevelCommands()


def get_help() -> str:
    """Retrieve the help text for the top-level omnivolt CLI."""
    return top_level.get_help(click.Context(top_level, info_name="omnivolt"))
