"""
@file app.py
@description
Entry point for the Open Data Census web application. Loads the settings
file once, builds the Flask app for the resulting startup mode and runs the
development server when executed directly.

Responsibilities:
- Load configuration (settings.json / $CENSUS_SETTINGS, plus .env secrets).
- Create the Flask app via `opendatacensus.create_app`.

External Dependencies:
- Flask (app framework)
- python-dotenv (through opendatacensus.config)

Used by:
- `flask --app app run` and WSGI servers importing `app:app`.
"""

import logging

from opendatacensus import create_app, load_config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

config = load_config()
app = create_app(config)


if __name__ == "__main__":
    app.run(port=config.port, debug=True)
