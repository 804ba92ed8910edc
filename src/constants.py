"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3
    INSTALL_ERROR = 4
    DEPLOY_ERROR = 5
    USAGE_ERROR = 64


class Scope(Enum):
    """Dependency scopes.

    Args:
        Enum (string): Lifecycle phase a dependency is needed for.
    """

    COMPILE = "compile"
    PROVIDED = "provided"
    RUNTIME = "runtime"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"

    @classmethod
    def parse(cls, value) -> "Scope":
        """Return the Scope for a string (case-insensitive); empty means compile."""
        if isinstance(value, Scope):
            return value
        if value is None or str(value).strip() == "":
            return cls.COMPILE
        return cls(str(value).strip().lower())


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    CENTRAL_REPO_ID = "central"
    CENTRAL_REPO_URL = "https://repo1.maven.org/maven2/"
    DEFAULT_LAYOUT = "default"
    LOCAL_REPO_ID = "local"

    DEFAULT_TYPE = "jar"
    POM_TYPE = "pom"

    ENV_LOCAL_REPO = "M2_REPO"
    ENV_LOG_LEVEL = "NAETHER_LOG_LEVEL"
    ENV_CONFIG = "NAETHER_CONFIG"
    ENV_DEPLOY_PASSWORD = "NAETHER_DEPLOY_PASSWORD"
    CONFIG_FILE_NAMES = ["naether.yml", "naether.yaml", "naether.json"]

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    USER_AGENT = "naether/1.0"

    CONNECT_TIMEOUT = 10  # seconds
    REQUEST_TIMEOUT = 30  # read timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_WORKERS = 4
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    SUPPORTED_SCHEMES = ("http", "https", "file")
