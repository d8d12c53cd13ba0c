# utils/webserver.py
import asyncio
import logging
import shutil
import time
from datetime import datetime, timezone

from aiohttp import web

logger = logging.getLogger("webserver")

BOT_KEY = web.AppKey("bot", object)
STORE_KEY = web.AppKey("store", object)
SETTINGS_KEY = web.AppKey("settings", object)
STARTED_KEY = web.AppKey("started_at", float)


def _disk_usage(path) -> dict:
    usage = shutil.disk_usage(path)
    return {"total": usage.total, "used": usage.used, "free": usage.free}


async def _folder_report(store) -> dict:
    report = {
        "path": str(store.image_dir),
        "exists": False,
        "imageCount": 0,
        "diskUsage": "unavailable",
    }
    loop = asyncio.get_running_loop()
    try:
        report["exists"] = await loop.run_in_executor(None, store.image_dir.is_dir)
        images = await loop.run_in_executor(None, store.list_images)
        report["imageCount"] = len(images)
        try:
            report["diskUsage"] = await loop.run_in_executor(None, _disk_usage, store.image_dir)
        except OSError as e:
            report["diskError"] = str(e)
    except OSError as e:
        report["error"] = str(e)
    return report


async def health_handler(request):
    app = request.app
    bot = app[BOT_KEY]
    store = app[STORE_KEY]
    settings = app[SETTINGS_KEY]
    try:
        ready = bot.is_ready()
        data = {
            "status": "ok",
            "uptime": int(time.monotonic() - app[STARTED_KEY]),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "discord": {
                "botStatus": "online" if ready else "offline",
                "botUser": str(bot.user) if ready and bot.user else "not logged in",
            },
            "environment": {
                "BOT_TOKEN": "set" if settings.bot_token else "unset",
                "IMAGE_FOLDER": "set" if settings.image_folder else "unset",
            },
            "imageFolder": await _folder_report(store),
            "imageHistory": {
                "count": len(store.history),
                "max": store.history.capacity,
            },
        }
    except Exception as e:
        logger.exception("Health check failed")
        return web.json_response({"status": "error", "message": str(e)}, status=500)

    logger.debug("Health check: %s", data)
    return web.json_response(data)


def create_app(bot, store, settings) -> web.Application:
    app = web.Application()
    app[BOT_KEY] = bot
    app[STORE_KEY] = store
    app[SETTINGS_KEY] = settings
    app[STARTED_KEY] = time.monotonic()
    app.add_routes([web.get("/health", health_handler)])
    return app


async def start_webserver(app: web.Application, port: int = 8080) -> web.AppRunner:
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    logger.info(f"Webserver running on port {port}. Endpoints: /health")
    return runner
