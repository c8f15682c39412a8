import logging

import uvicorn

from hls_proxy.config import HOST, LOG_LEVEL, PORT
from hls_proxy.server import create_app

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

app = create_app()

if __name__ == '__main__':
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
