"""
Resolution of the editor's initialization options into a launch specification.

The options document is loosely typed: anything that is missing or has an unexpected
shape is treated as absent. The only value which can make resolution fail is an
explicit server path that cannot be turned into a URI.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlsplit

from omnivolt import constants
from omnivolt.exceptions import InvalidServerPathError

log = logging.getLogger(__name__)

# characters left unescaped when turning a server path into a URI
_SERVER_PATH_SAFE_CHARS = "/\\:@!$&'()*+,;=-._~%"


@dataclass(frozen=True)
class DocumentFilter:
    language: str
    pattern: str
    scheme: str | None = None

    def to_json(self) -> dict[str, str]:
        result = {"language": self.language, "pattern": self.pattern}
        if self.scheme is not None:
            result["scheme"] = self.scheme
        return result


DEFAULT_DOCUMENT_SELECTOR = (DocumentFilter(language=constants.LANGUAGE_ID, pattern=constants.DOCUMENT_PATTERN),)


@dataclass(frozen=True)
class LanguageOptions:
    """
    Options of the language-specific section, rendered as dedicated command line flags.
    """

    solution: str | None = None
    loglevel: str = constants.DEFAULT_LOG_LEVEL

    def to_args(self) -> list[str]:
        args = [constants.LOG_LEVEL_FLAG, self.loglevel]
        if self.solution:
            args.extend([constants.SOLUTION_FLAG, self.solution])
        return args


@dataclass(frozen=True)
class LaunchOptions:
    """
    The recognised initialization options after a permissive traversal of the raw document.
    """

    server_path: str | None = None
    server_args: tuple[str, ...] | None = None
    language: LanguageOptions = field(default_factory=LanguageOptions)

    @classmethod
    def from_initialization_options(cls, options: Any) -> "LaunchOptions":
        lsp = _get_mapping(options, constants.PLUGIN_OPTIONS_KEY)
        language = _get_mapping(options, constants.LANGUAGE_OPTIONS_KEY)

        server_args = None
        raw_args = lsp.get("serverArgs")
        if isinstance(raw_args, list) and raw_args:
            server_args = tuple(arg for arg in raw_args if isinstance(arg, str))
            if len(server_args) != len(raw_args):
                log.warning("Ignoring non-string entries in serverArgs: %s", raw_args)

        return cls(
            server_path=_get_non_empty_str(lsp, "serverPath"),
            server_args=server_args,
            language=LanguageOptions(
                solution=_get_non_empty_str(language, "solution"),
                loglevel=_get_non_empty_str(language, "loglevel") or constants.DEFAULT_LOG_LEVEL,
            ),
        )


@dataclass(frozen=True)
class LaunchSpec:
    server_path_override: str | None
    """
    the URI of a user-specified server executable; if set, no managed server is provisioned
    """
    server_args: tuple[str, ...]
    document_selector: tuple[DocumentFilter, ...] = DEFAULT_DOCUMENT_SELECTOR

    @property
    def has_override(self) -> bool:
        return self.server_path_override is not None


def _get_mapping(container: Any, key: str) -> Mapping[str, Any]:
    if isinstance(container, Mapping):
        value = container.get(key)
        if isinstance(value, Mapping):
            return value
    return {}


def _get_non_empty_str(container: Mapping[str, Any], key: str) -> str | None:
    value = container.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def server_path_to_uri(server_path: str) -> str:
    """
    Converts a user-specified server path into a scheme-relative URI, which the host resolves
    as a literal path (or a name to be looked up on the PATH).

    :param server_path: the path or file name configured by the user
    :return: the URI of the form ``urn:<path>``
    """
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in server_path):
        raise InvalidServerPathError(server_path)
    uri = f"{constants.SERVER_PATH_URI_SCHEME}:{quote(server_path, safe=_SERVER_PATH_SAFE_CHARS)}"
    try:
        parts = urlsplit(uri)
    except ValueError as e:
        raise InvalidServerPathError(server_path, e) from e
    if parts.scheme != constants.SERVER_PATH_URI_SCHEME or not parts.path:
        raise InvalidServerPathError(server_path)
    return uri


def resolve_launch_spec(initialization_options: Any) -> LaunchSpec:
    """
    Builds the launch specification from the editor's initialization options.

    :param initialization_options: the raw ``initializationOptions`` value of the initialize request (may be None)
    :return: the launch specification
    """
    options = LaunchOptions.from_initialization_options(initialization_options)

    if options.server_args is not None:
        server_args = options.server_args
        if options.language != LanguageOptions():
            log.warning("serverArgs replaces the default arguments; ignoring solution/loglevel options %s", options.language)
    else:
        server_args = (*constants.DEFAULT_SERVER_ARGS, *options.language.to_args())

    server_path_override = None
    if options.server_path is not None:
        server_path_override = server_path_to_uri(options.server_path)
        log.info("Using user-specified server at %s", server_path_override)

    return LaunchSpec(server_path_override=server_path_override, server_args=tuple(server_args))
