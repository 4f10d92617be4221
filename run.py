import logging

import uvicorn

from serverside_datatable.api.server import create_app
from serverside_datatable.container import Container

logger = logging.getLogger(__name__)


def main(container=None):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    container = container or Container()
    app = create_app(container)
    host = container.config.API_HOST()
    port = container.config.API_PORT()
    logger.info("Serving DataTables API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
