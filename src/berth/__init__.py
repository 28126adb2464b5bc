"""berth: local service-lifecycle manager.

Resolves named service bundles (directories holding a compose descriptor),
acquires them from a remote catalog on first use, caches them locally and
drives their lifecycle through an external compose binary.

This package contains:
- bundles: store, catalog client, templates and the acquisition pipeline
- deployment: runtime detection, process runner and lifecycle operations
- cli: the ``berth`` command-line frontend
- utils: configuration and logging
"""

__version__ = "0.4.0"

__all__ = ["__version__"]
