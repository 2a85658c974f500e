"""Run API Service.
"""

import uvicorn
from codelab import api_app
from codelab.engine import HOST, PORT, LOG_LEVEL, LOG_FORMAT
from codelab.logging_config import setup_logging


if __name__ == "__main__":
    setup_logging(LOG_LEVEL, LOG_FORMAT)
    uvicorn.run(
        api_app,
        host=HOST, port=PORT,
        log_config=None,
    )
