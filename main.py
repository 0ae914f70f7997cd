"""Development server entry point: python main.py"""

import os

from app import app

if __name__ == "__main__":
    server_cfg = app.config["APP_CFG"].get("server") or {}
    debug = os.getenv("FLASK_DEBUG", "false").lower() in ("1", "true", "yes", "y")
    app.run(
        host=server_cfg.get("host", "0.0.0.0"),
        port=int(server_cfg.get("port", 3000)),
        debug=debug,
    )
