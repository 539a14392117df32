"""Exception types raised inside upstream clients and absorbed at the fallback boundaries."""


class DashboardError(Exception):
    """Base class for every error the dashboard raises on purpose."""


class ConfigurationError(DashboardError):
    """Required configuration is missing or unusable."""


class MissingCredentialError(ConfigurationError):
    """An upstream API key is not configured."""

    def __init__(self, env_var: str) -> None:
        super().__init__(f"{env_var} environment variable is required")
        self.env_var = env_var


class SourceFetchError(DashboardError):
    """An upstream data source could not deliver a usable value."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class PayloadShapeError(SourceFetchError):
    """The upstream answered, but the payload did not have the expected shape."""


class InsightGenerationError(DashboardError):
    """The text-generation call failed or produced nothing usable."""


class InsightParseError(InsightGenerationError):
    """The text-generation reply could not be turned into an insight."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(f"{kind}: {message}")
        self.kind = kind
