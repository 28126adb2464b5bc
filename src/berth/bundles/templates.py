"""Template Synthesizer: canned bundles for well-known service kinds.

``synthesize`` is the last-resort acquisition fallback. It is pure: it only
renders strings and returns them, and the pipeline writes them to disk.

Known kinds are matched case-insensitively on the service name or one of the
kind's aliases. Anything else gets a generic single-container descriptor with
a placeholder image the user is expected to edit.

The same rendering backs ``berth init``, which scaffolds a new bundle from one
of the :data:`INIT_TEMPLATES` layouts.
"""

from dataclasses import dataclass, field

from jinja2 import Template

from berth.bundles.store import COMPOSE_FILE_NAME, README_FILE_NAME

GENERIC_KIND = "generic"
PLACEHOLDER_IMAGE = "CHANGE_ME:latest"


@dataclass(frozen=True)
class ServiceKind:
    """Defaults for one well-known service kind."""

    name: str
    description: str
    image: str
    ports: tuple[str, ...]
    data_path: str
    healthcheck: tuple[str, ...]
    environment: dict[str, str] = field(default_factory=dict)
    aliases: tuple[str, ...] = ()


KNOWN_KINDS: dict[str, ServiceKind] = {
    kind.name: kind
    for kind in (
        ServiceKind(
            name="postgres",
            description="PostgreSQL relational database",
            image="postgres:16-alpine",
            ports=("5432:5432",),
            data_path="/var/lib/postgresql/data",
            healthcheck=("CMD-SHELL", "pg_isready -U postgres"),
            environment={
                "POSTGRES_USER": "postgres",
                "POSTGRES_PASSWORD": "changeme",
                "POSTGRES_DB": "app",
            },
            aliases=("postgresql", "pg"),
        ),
        ServiceKind(
            name="mysql",
            description="MySQL relational database",
            image="mysql:8",
            ports=("3306:3306",),
            data_path="/var/lib/mysql",
            healthcheck=("CMD", "mysqladmin", "ping", "-h", "localhost"),
            environment={
                "MYSQL_ROOT_PASSWORD": "changeme",
                "MYSQL_USER": "user",
                "MYSQL_PASSWORD": "changeme",
                "MYSQL_DATABASE": "app",
            },
            aliases=("mariadb",),
        ),
        ServiceKind(
            name="redis",
            description="Redis in-memory key-value cache",
            image="redis:7-alpine",
            ports=("6379:6379",),
            data_path="/data",
            healthcheck=("CMD", "redis-cli", "ping"),
        ),
        ServiceKind(
            name="mongo",
            description="MongoDB document database",
            image="mongo:7",
            ports=("27017:27017",),
            data_path="/data/db",
            healthcheck=("CMD", "mongosh", "--quiet", "--eval", "db.runCommand({ping: 1}).ok"),
            environment={
                "MONGO_INITDB_ROOT_USERNAME": "root",
                "MONGO_INITDB_ROOT_PASSWORD": "changeme",
            },
            aliases=("mongodb",),
        ),
        ServiceKind(
            name="nginx",
            description="Nginx reverse proxy and static web server",
            image="nginx:alpine",
            ports=("8080:80",),
            data_path="/usr/share/nginx/html",
            healthcheck=("CMD", "wget", "-q", "--spider", "http://localhost/"),
        ),
    )
}

_KNOWN_DESCRIPTOR = Template(
    """version: "3.8"

services:
  {{ kind.name }}:
    image: {{ kind.image }}
    restart: unless-stopped
{% if kind.environment %}
    environment:
{% for key, value in kind.environment.items() %}
      {{ key }}: "{{ value }}"
{% endfor %}
{% endif %}
    ports:
{% for port in kind.ports %}
      - "{{ port }}"
{% endfor %}
    volumes:
      - {{ volume }}:{{ kind.data_path }}
    healthcheck:
      test: [{% for part in kind.healthcheck %}"{{ part }}"{% if not loop.last %}, {% endif %}{% endfor %}]
      interval: 10s
      timeout: 5s
      retries: 5

volumes:
  {{ volume }}:
""",
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

_GENERIC_DESCRIPTOR = Template(
    """version: "3.8"

# Generated placeholder for '{{ service }}'.
# Edit the image (and ports/volumes) below before running: berth up {{ service }}
services:
  app:
    image: {{ placeholder }}
    restart: unless-stopped
    ports:
      - "8080:8080"
    volumes:
      - app_data:/data

volumes:
  app_data:
""",
    keep_trailing_newline=True,
)

_README = Template(
    """# {{ service }}

{{ description }}

## Quick Start

```bash
# Start the service
berth up {{ service }}

# Stop the service
berth down {{ service }}

# View logs
berth logs {{ service }}

# Restart the service
berth restart {{ service }}
```

## Configuration

Edit `docker-compose.yml` to customize your service configuration.
{% if environment %}

Default credentials (change them before exposing the service):

{% for key, value in environment.items() %}
- `{{ key }}` = `{{ value }}`
{% endfor %}
{% endif %}

## Notes

- Created with berth
- Template: {{ template }}
""",
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass
class BundleContent:
    """Files of a synthesized bundle, keyed by relative filename."""

    kind: str
    files: dict[str, str]

    @property
    def descriptor(self) -> str:
        return self.files[COMPOSE_FILE_NAME]


def match_kind(name: str) -> ServiceKind | None:
    """Known kind for a service name, matched case-insensitively on name or alias."""
    lowered = name.strip().lower()
    for kind in KNOWN_KINDS.values():
        if lowered == kind.name or lowered in kind.aliases:
            return kind
    return None


def known_kinds() -> list[str]:
    return sorted(KNOWN_KINDS)


def synthesize(name: str) -> BundleContent:
    """Render a minimal bundle for ``name``.

    Args:
        name: Service name, used as the kind hint

    Returns:
        BundleContent with ``docker-compose.yml`` and ``README.md``

    Examples:
        >>> content = synthesize("Redis")
        >>> "redis:7-alpine" in content.descriptor
        True
    """
    kind = match_kind(name)
    if kind is None:
        descriptor = _GENERIC_DESCRIPTOR.render(service=name, placeholder=PLACEHOLDER_IMAGE)
        readme = _README.render(
            service=name,
            description="Generic single-container service. Set the image in docker-compose.yml.",
            environment={},
            template=GENERIC_KIND,
        )
        return BundleContent(GENERIC_KIND, {COMPOSE_FILE_NAME: descriptor, README_FILE_NAME: readme})

    descriptor = _KNOWN_DESCRIPTOR.render(kind=kind, volume=f"{kind.name}_data")
    readme = _README.render(
        service=name,
        description=kind.description,
        environment=kind.environment,
        template=kind.name,
    )
    return BundleContent(kind.name, {COMPOSE_FILE_NAME: descriptor, README_FILE_NAME: readme})


# =============================================================================
# Scaffolding templates for ``berth init``
# =============================================================================

INIT_TEMPLATES = {
    "basic": "Basic Container - Simple single-container setup",
    "database": "Database Server - PostgreSQL or MySQL database",
    "webapp": "Web Application - App, database, and reverse proxy",
    "empty": "Empty - Create from scratch",
}

_BASIC_COMPOSE = """version: '3.8'

services:
  app:
    image: nginx:latest
    ports:
      - "8080:80"
    volumes:
      - ./data:/usr/share/nginx/html
    restart: unless-stopped
"""

_WEBAPP_COMPOSE = """version: '3.8'

services:
  app:
    image: node:18-alpine
    working_dir: /app
    volumes:
      - ./app:/app
    environment:
      - NODE_ENV=production
      - DATABASE_URL=postgres://user:password@db:5432/mydb
    command: npm start
    depends_on:
      - db
    restart: unless-stopped

  db:
    image: postgres:15
    environment:
      POSTGRES_PASSWORD: password
      POSTGRES_USER: user
      POSTGRES_DB: mydb
    volumes:
      - db_data:/var/lib/postgresql/data
    restart: unless-stopped

  nginx:
    image: nginx:alpine
    ports:
      - "80:80"
    volumes:
      - ./nginx.conf:/etc/nginx/nginx.conf:ro
    depends_on:
      - app
    restart: unless-stopped

volumes:
  db_data:
"""

_EMPTY_COMPOSE = """version: '3.8'

services:
  # Add your services here
"""


def render_init_template(template: str, service: str, db_type: str = "postgres") -> BundleContent:
    """Scaffold a bundle from one of :data:`INIT_TEMPLATES`.

    :raises ValueError: for an unknown template or database type
    """
    if template not in INIT_TEMPLATES:
        raise ValueError(f"Unknown template '{template}'. Choose from: {', '.join(INIT_TEMPLATES)}")

    if template == "basic":
        compose = _BASIC_COMPOSE
    elif template == "database":
        if db_type not in ("postgres", "mysql"):
            raise ValueError(f"Unknown database type '{db_type}'. Choose postgres or mysql.")
        compose = _KNOWN_DESCRIPTOR.render(kind=KNOWN_KINDS[db_type], volume="db_data")
    elif template == "webapp":
        compose = _WEBAPP_COMPOSE
    else:
        compose = _EMPTY_COMPOSE

    readme = _README.render(
        service=service,
        description=INIT_TEMPLATES[template].split(" - ", 1)[1],
        environment={},
        template=template,
    )
    return BundleContent(template, {COMPOSE_FILE_NAME: compose, README_FILE_NAME: readme})
