import pytest

from omnivolt.config import DEFAULT_DOCUMENT_SELECTOR, DocumentFilter, LaunchOptions, resolve_launch_spec, server_path_to_uri
from omnivolt.exceptions import ConfigError, InvalidServerPathError


class TestResolveLaunchSpec:
    """Tests the resolution of initialization options into a launch spec."""

    def test_defaults_without_options(self):
        spec = resolve_launch_spec(None)

        assert spec.server_path_override is None
        assert not spec.has_override
        assert spec.server_args == ("--languageserver", "--loglevel", "information")
        assert spec.document_selector == (DocumentFilter(language="csharp", pattern="**/*.{cs,csx}"),)

    @pytest.mark.parametrize(
        "options",
        [
            {},
            [],
            "nonsense",
            {"lsp": None},
            {"lsp": "serverPath"},
            {"lsp": {"serverArgs": "--foo", "serverPath": 42}},
            {"lsp": {"serverArgs": [], "serverPath": ""}},
            {"csharp": ["solution"]},
            {"csharp": {"solution": 1, "loglevel": None}},
        ],
    )
    def test_misshaped_options_degrade_to_defaults(self, options):
        assert resolve_launch_spec(options) == resolve_launch_spec(None)

    def test_server_args_replace_defaults(self):
        spec = resolve_launch_spec({"lsp": {"serverArgs": ["--stdio", "--verbose"]}})

        assert spec.server_args == ("--stdio", "--verbose")

    def test_server_args_replace_language_flags(self):
        options = {"lsp": {"serverArgs": ["--stdio"]}, "csharp": {"solution": "App.sln", "loglevel": "debug"}}

        assert resolve_launch_spec(options).server_args == ("--stdio",)

    def test_non_string_server_args_are_skipped(self):
        spec = resolve_launch_spec({"lsp": {"serverArgs": ["-a", 3, None, "-b"]}})

        assert spec.server_args == ("-a", "-b")

    def test_language_options_become_flags(self):
        spec = resolve_launch_spec({"csharp": {"solution": "src/App.sln", "loglevel": "debug"}})

        assert spec.server_args == ("--languageserver", "--loglevel", "debug", "-s", "src/App.sln")

    def test_missing_loglevel_uses_default(self):
        spec = resolve_launch_spec({"csharp": {"solution": "App.csproj"}})

        assert spec.server_args == ("--languageserver", "--loglevel", "information", "-s", "App.csproj")

    def test_server_path_override(self):
        spec = resolve_launch_spec({"lsp": {"serverPath": "/usr/local/bin/OmniSharp", "serverArgs": ["-lsp"]}})

        assert spec.has_override
        assert spec.server_path_override == "urn:/usr/local/bin/OmniSharp"
        assert spec.server_args == ("-lsp",)
        assert spec.document_selector == DEFAULT_DOCUMENT_SELECTOR

    def test_malformed_server_path_fails(self):
        with pytest.raises(InvalidServerPathError) as exc_info:
            resolve_launch_spec({"lsp": {"serverPath": "omni\nsharp"}})

        assert isinstance(exc_info.value, ConfigError)
        assert exc_info.value.server_path == "omni\nsharp"


class TestServerPathToUri:
    def test_plain_file_name(self):
        assert server_path_to_uri("OmniSharp") == "urn:OmniSharp"

    def test_windows_path_keeps_separators(self):
        assert server_path_to_uri(r"C:\tools\OmniSharp.exe") == r"urn:C:\tools\OmniSharp.exe"

    def test_spaces_are_escaped(self):
        assert server_path_to_uri("/opt/omni sharp/OmniSharp") == "urn:/opt/omni%20sharp/OmniSharp"

    @pytest.mark.parametrize("server_path", ["bad\x00path", "tab\tpath", "//[invalid", "//"])
    def test_rejects_malformed_paths(self, server_path):
        with pytest.raises(InvalidServerPathError):
            server_path_to_uri(server_path)


class TestLaunchOptions:
    def test_parses_all_recognised_options(self):
        options = LaunchOptions.from_initialization_options(
            {"lsp": {"serverPath": "x", "serverArgs": ["a"]}, "csharp": {"solution": "s.sln", "loglevel": "trace"}}
        )

        assert options.server_path == "x"
        assert options.server_args == ("a",)
        assert options.language.solution == "s.sln"
        assert options.language.loglevel == "trace"

    def test_document_filter_json_omits_absent_scheme(self):
        assert DocumentFilter("csharp", "**/*.cs").to_json() == {"language": "csharp", "pattern": "**/*.cs"}
        assert DocumentFilter("csharp", "**/*.cs", "file").to_json() == {"language": "csharp", "pattern": "**/*.cs", "scheme": "file"}
