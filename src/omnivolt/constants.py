LANGUAGE_ID = "csharp"
DOCUMENT_PATTERN = "**/*.{cs,csx}"

PLUGIN_OPTIONS_KEY = "lsp"
LANGUAGE_OPTIONS_KEY = "csharp"

DEFAULT_SERVER_ARGS = ("--languageserver",)
SOLUTION_FLAG = "-s"
LOG_LEVEL_FLAG = "--loglevel"
DEFAULT_LOG_LEVEL = "information"

SERVER_PATH_URI_SCHEME = "urn"

RELEASE_API_URL = "https://api.github.com/repos/OmniSharp/omnisharp-roslyn/releases/latest"
RELEASE_DOWNLOAD_URL = "https://github.com/OmniSharp/omnisharp-roslyn/releases/download"
USER_AGENT = "omnivolt"

INSTALL_DIR_NAME = "omnisharp"
VERSION_FILE_NAME = "omnisharp.version"
BINARY_BASE_NAME = "OmniSharp"
TARGET_FRAMEWORK = "net6.0"

LOG_FILE_NAME = "omnivolt.log"
OMNIVOLT_LOG_FORMAT = "%(levelname)-5s %(asctime)-15s %(name)s:%(funcName)s:%(lineno)d - %(message)s"

FILE_ENCODING = "utf-8"

INITIALIZE_METHOD = "initialize"
