"""Server entry point for the action log service."""

import logging

from action_log.app import create_app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    app = create_app()
    server = app.config["components"]["config"]["server"]
    logger.info(
        "Log server running at http://%s:%d", server["host"], server["port"]
    )
    app.run(host=server["host"], port=server["port"], debug=server["debug"], use_reloader=False)


if __name__ == "__main__":
    main()
