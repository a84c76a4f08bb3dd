import asyncio
import logging
import platform

import uvicorn

from config.logging_config import setup_logging
from config.settings import AD_MODE, FORCE_AD, FORCE_AD_RAW, GAME_URL, LOG_LEVEL, PORT, SCAN_COOLDOWN_MINUTES
from kiosk.api.main import create_app

setup_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

app = create_app()

def start_api(port: int = PORT) -> uvicorn.Server:

    config = uvicorn.Config(app, host="0.0.0.0", port=port, loop="asyncio", proxy_headers=True)
    server = uvicorn.Server(config)
    return server

async def main(port: int = PORT):

    logger.info(
        f"Kiosk :{port}  GAME_URL={GAME_URL}  AD_MODE={AD_MODE}  FORCE_AD={FORCE_AD} "
        f"(env={FORCE_AD_RAW or 'unset'})  cooldown={SCAN_COOLDOWN_MINUTES}min"
    )

    await start_api(port).serve()

if __name__ == "__main__":

    import sys

    if len(sys.argv) > 1:
        port = int(sys.argv[1])
    else:
        port = PORT

    if platform.system() == 'Windows':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    asyncio.run(main(port))
