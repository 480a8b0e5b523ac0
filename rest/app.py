"""
goal: flask app factory for the integrity checker REST API. wires the WordPress host view, the
      checksum service client, the JSON stores and the nonce manager into the route dispatcher,
      then serves the app with waitress.
"""

from __future__ import annotations

import logging

import requests
from flask import Flask
from waitress import serve

from checker.api_client import ApiClient
from checker.file_diff import FileDiff
from checker.process import Process
from checker.resources import lookups_for
from checker.settings import Settings
from checker.storage import JsonStore
from checker.wp_host import WordPressHost
from rest.config import Config
from rest.nonce import NonceManager
from rest.rest import NAMESPACE, Rest

logger = logging.getLogger("integrity_checker.app")


def build_app(
    config: Config,
    host: WordPressHost | None = None,
    session: requests.Session | None = None,
) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False  # keep envelope order: code, message, data

    host = host or WordPressHost(config.wp_root, config.plugins_path, config.themes_path)
    settings = Settings(
        JsonStore(config.settings_path),
        smtp_host=config.smtp_host,
        smtp_port=config.smtp_port,
        smtp_user=config.smtp_user,
        smtp_password=config.smtp_password,
        mail_from=config.mail_from,
    )
    api_client = ApiClient(settings, config.api_url, config.api_timeout, session=session)
    process = Process(JsonStore(config.process_path), JsonStore(config.results_path))
    file_diff = FileDiff(api_client, lookups_for(host))

    # without a secret only the no-auth override can open the API
    nonces = None
    if config.nonce_secret:
        nonces = NonceManager(config.nonce_secret, config.nonce_lifetime)
    if nonces is None and not config.no_rest_auth:
        logger.warning("no nonce secret configured, every REST request will be rejected")
    if config.no_rest_auth:
        logger.warning("REST authentication is disabled")

    rest = Rest(settings, api_client, process, file_diff, nonces, no_rest_auth=config.no_rest_auth)
    rest.register_rest_endpoints(app)
    app.extensions["integrity_checker"] = rest
    return app


def run_server(config: Config) -> None:
    app = build_app(config)
    logger.info("serving on http://%s:%s/%s", config.host, config.port, NAMESPACE)
    try:
        serve(app, host=config.host, port=config.port)
    except KeyboardInterrupt:
        pass  # expected when shutting down
