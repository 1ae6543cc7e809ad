from __future__ import annotations

import logging

from flask import Flask, jsonify

from records.config import get_log_level
from records.context import init_services
from records.identity import IdentityProvider
from records.routes import BLUEPRINTS
from records.stores import StoreFactory

logger = logging.getLogger(__name__)


def create_app(
    *,
    identity_provider: IdentityProvider | None = None,
    store_factory: StoreFactory | None = None,
) -> Flask:
    """Build the Flask application.

    The identity provider and store factory default to the Supabase-backed
    implementations (or MongoDB, per ``RECORDS_STORE``) and are only built
    when the first authenticated request arrives.
    """

    app = Flask(__name__)
    app.json.sort_keys = False
    init_services(app, identity_provider=identity_provider, store_factory=store_factory)

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.get("/api/health")
    def health():
        return jsonify({"ok": True})

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(debug=True)
