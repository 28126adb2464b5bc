"""Bundle resolution and acquisition.

This package owns everything between a service name and a complete bundle
directory on disk: the store, the remote catalog client, the built-in
templates, the fetch strategies and the pipeline that chains them.
"""

from .catalog import CatalogClient, CatalogEntry
from .exceptions import (
    AcquisitionFailedError,
    BerthError,
    BinaryNotFoundError,
    CatalogMalformedError,
    CatalogUnreachableError,
    DownloadFailedError,
    InvalidServiceNameError,
    NonZeroExitError,
    ServiceNotInCatalogError,
    ServiceNotInstalledError,
    SignalTerminatedError,
)
from .pipeline import AcquisitionPipeline, build_pipeline
from .store import BundleStore
from .templates import BundleContent, synthesize

__all__ = [
    "AcquisitionPipeline",
    "build_pipeline",
    "BundleStore",
    "CatalogClient",
    "CatalogEntry",
    "BundleContent",
    "synthesize",
    "BerthError",
    "InvalidServiceNameError",
    "ServiceNotInstalledError",
    "CatalogUnreachableError",
    "CatalogMalformedError",
    "ServiceNotInCatalogError",
    "DownloadFailedError",
    "AcquisitionFailedError",
    "BinaryNotFoundError",
    "NonZeroExitError",
    "SignalTerminatedError",
]
