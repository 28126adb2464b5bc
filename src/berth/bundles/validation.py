"""Static checks for a bundle's compose descriptor.

``validate_descriptor`` inspects the YAML without running anything. Findings
are split into issues (the bundle will not start) and warnings (it probably
will, but something looks off). The lifecycle layer adds the result of the
compose binary's own ``config --quiet`` check on top.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

PORT_PATTERN = re.compile(r"^\d+:\d+$")


@dataclass
class ValidationReport:
    """Outcome of validating one bundle."""

    service: str
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


def _check_service(name: str, config: Any, top_level_volumes: dict, report: ValidationReport) -> None:
    if not isinstance(config, dict):
        report.issues.append(f'Service "{name}" must be a mapping')
        return

    if not config.get("image") and not config.get("build"):
        report.issues.append(f'Service "{name}" has no image or build configuration')

    for port in config.get("ports") or []:
        if isinstance(port, str) and not PORT_PATTERN.match(port):
            report.warnings.append(f'Service "{name}": Port "{port}" may have invalid format')

    environment = config.get("environment")
    if isinstance(environment, list):
        for entry in environment:
            if isinstance(entry, str) and "=" not in entry:
                report.warnings.append(f'Service "{name}": Environment variable "{entry}" missing value')

    for volume in config.get("volumes") or []:
        if not isinstance(volume, str) or ":" not in volume:
            continue
        source = volume.split(":", 1)[0]
        if source.startswith((".", "/", "~", "$")):
            continue
        if source not in top_level_volumes:
            report.warnings.append(
                f'Service "{name}": Volume "{source}" not defined in top-level volumes'
            )


def validate_descriptor(service: str, descriptor: Path) -> ValidationReport:
    """Run the static descriptor checks for ``service``.

    Checks, in order: file present, YAML syntax, ``version`` key (warning),
    at least one service, image or build per service, ``host:container``
    port strings, ``KEY=value`` list environment entries, named volumes
    declared at top level.
    """
    report = ValidationReport(service)

    if not descriptor.is_file():
        report.issues.append(f"{descriptor.name} not found")
        return report

    try:
        content = yaml.safe_load(descriptor.read_text())
    except yaml.YAMLError as e:
        report.issues.append(f"Invalid YAML syntax: {e}")
        return report

    if not isinstance(content, dict):
        report.issues.append("Descriptor must be a YAML mapping")
        return report

    if not content.get("version"):
        report.warnings.append(f"No version specified in {descriptor.name}")

    services = content.get("services")
    if not isinstance(services, dict) or not services:
        report.issues.append("No services defined")
        return report

    top_level_volumes = content.get("volumes") or {}
    if not isinstance(top_level_volumes, dict):
        top_level_volumes = {}

    for name, config in services.items():
        _check_service(name, config, top_level_volumes, report)

    return report


def describe_services(descriptor: Path) -> dict[str, dict[str, Any]]:
    """Image, ports and volumes per compose service, for display.

    Returns an empty dict when the descriptor is missing or unreadable.
    """
    try:
        content = yaml.safe_load(descriptor.read_text())
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(content, dict) or not isinstance(content.get("services"), dict):
        return {}

    summary = {}
    for name, config in content["services"].items():
        config = config if isinstance(config, dict) else {}
        summary[name] = {
            "image": config.get("image") or ("(build)" if config.get("build") else None),
            "ports": [str(p) for p in config.get("ports") or []],
            "volumes": [str(v) for v in config.get("volumes") or []],
        }
    return summary
