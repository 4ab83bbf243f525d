import uvicorn

from api.server import create_app
from config import constants
from utils.logging_config import configure_logging

configure_logging()

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=constants.DEFAULT_SERVER_HOST, port=constants.SERVER_PORT)
