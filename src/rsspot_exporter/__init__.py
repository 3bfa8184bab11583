from rsspot_exporter.auth import Credentials, TokenAuthenticator
from rsspot_exporter.client import SpotApiClient
from rsspot_exporter.collector import SpotMetricsCollector
from rsspot_exporter.errors import (
    ApiError,
    AuthenticationError,
    CollectionError,
    ConfigError,
    ExporterError,
    RequestError,
)
from rsspot_exporter.scheduler import CollectionScheduler, SchedulerState
from rsspot_exporter.settings import ExporterSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ApiError",
    "AuthenticationError",
    "CollectionError",
    "CollectionScheduler",
    "ConfigError",
    "Credentials",
    "ExporterError",
    "ExporterSettings",
    "RequestError",
    "SchedulerState",
    "SpotApiClient",
    "SpotMetricsCollector",
    "TokenAuthenticator",
    "load_settings",
]
