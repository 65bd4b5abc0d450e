"""Content producers for the generated stack files."""

from __future__ import annotations

from ..settings import ACME_EMAIL_PLACEHOLDER, RunConfiguration

GATEWAY_CONFIG_FILE = 'traefik.yml'
COMPOSE_FILE = 'docker-compose.yml'
ACME_STORAGE_FILE = 'acme.json'

_GATEWAY_CONFIG_TEMPLATE = """\
api:
  dashboard: true
  insecure: true

entryPoints:
  web:
    address: ":80"
  websecure:
    address: ":443"

providers:
  docker:
    endpoint: "unix:///var/run/docker.sock"
    exposedByDefault: false
    network: {network}

certificatesResolvers:
  letsencrypt:
    acme:
      email: {email}
      storage: /{acme_file}
      httpChallenge:
        entryPoint: web

log:
  level: INFO

accessLog: {{}}
"""

_COMPOSE_TEMPLATE = """\
version: '3'

services:
  traefik:
    image: traefik:{version}
    container_name: traefik
    restart: unless-stopped
    ports:
      - "80:80"
      - "443:443"
      - "{dashboard_port}:8080"
    volumes:
      - /var/run/docker.sock:/var/run/docker.sock:ro
      - ./{config_file}:/{config_file}:ro
      - ./{acme_file}:/{acme_file}
    networks:
      - {network}

networks:
  {network}:
    external: true
"""


def render_gateway_config(config: RunConfiguration) -> str:
    """Render traefik.yml.

    The ACME email is always the placeholder here; the operator value is
    applied afterwards by placeholder injection.
    """
    return _GATEWAY_CONFIG_TEMPLATE.format(
        network=config.network_name,
        email=ACME_EMAIL_PLACEHOLDER,
        acme_file=ACME_STORAGE_FILE,
    )


def render_compose(config: RunConfiguration) -> str:
    return _COMPOSE_TEMPLATE.format(
        version=config.traefik_version,
        dashboard_port=config.dashboard_port,
        network=config.network_name,
        config_file=GATEWAY_CONFIG_FILE,
        acme_file=ACME_STORAGE_FILE,
    )
