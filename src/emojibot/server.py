from __future__ import annotations

import os
import signal
from collections.abc import Mapping

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.convertors import Convertor, register_url_convertor

from emojibot.config.env import EnvSnapshot, InvalidBoolError, lookup_flag
from emojibot.config.settings import EnvMode, get_settings
from emojibot.utils.log import get_logger, set_level

_LOGGER = get_logger(__name__)

BIND_HOST = "0.0.0.0"
PORT = 8080

FAIL_FLAG_KEY = "FAIL_HEALTHCHECK"
HEALTHY_BODY = "🆗\n"
FAILING_BODY = "500 - Failing health checks 😭\n"
INVALID_FLAG_BODY = f"500 - Invalid {FAIL_FLAG_KEY} value 😭\n"
GREETING_TEMPLATE = "Hello, {}! This is 🌱"


class AnyPathConvertor(Convertor[str]):
    # Starlette's "path" uses `.*`, which stops at a newline.
    regex = "[\\s\\S]*"

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("anypath", AnyPathConvertor())


def create_app(environ: Mapping[str, str] | None = None, *, strict: bool = False) -> FastAPI:
    """Build the service.

    ``environ`` is consulted on every health check; ``None`` means the live
    process environment, so flipping ``FAIL_HEALTHCHECK`` takes effect on the
    next request. Pass an ``EnvSnapshot`` to decouple the service from
    ``os.environ`` until the snapshot is reloaded.
    """
    app = FastAPI(title="emojibot")

    @app.api_route("/healthcheck", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    def healthcheck() -> PlainTextResponse:
        try:
            failing = lookup_flag(FAIL_FLAG_KEY, False, environ, strict=strict)
        except InvalidBoolError as exc:
            _LOGGER.error("healthcheck failing on malformed flag: %s", exc)
            return PlainTextResponse(INVALID_FLAG_BODY, status_code=500)

        if failing:
            _LOGGER.info("healthcheck failing: %s is set", FAIL_FLAG_KEY)
            return PlainTextResponse(FAILING_BODY, status_code=500)
        return PlainTextResponse(HEALTHY_BODY)

    @app.get("/{path:anypath}", response_class=PlainTextResponse)
    def greeting(request: Request) -> PlainTextResponse:
        # Echoed verbatim, no escaping.
        name = request.scope["path"][1:]
        _LOGGER.debug("greeting path=%s", name)
        return PlainTextResponse(GREETING_TEMPLATE.format(name))

    return app


def _install_reload_handler(snapshot: EnvSnapshot) -> None:
    if not hasattr(signal, "SIGHUP"):
        _LOGGER.warning("SIGHUP unavailable; environment snapshot cannot be reloaded")
        return

    def _reload(signum, frame):  # type: ignore[no-untyped-def]
        snapshot.reload()

    signal.signal(signal.SIGHUP, _reload)


def build_app_from_settings() -> FastAPI:
    settings = get_settings()
    environ: Mapping[str, str] | None = None
    if settings.env_mode is EnvMode.SNAPSHOT:
        snapshot = EnvSnapshot(os.environ)
        _install_reload_handler(snapshot)
        environ = snapshot
    return create_app(environ, strict=settings.healthcheck_strict)


# Lenient, live-environment app for `uvicorn emojibot.server:app`. Settings-driven
# behaviour needs `emojibot` or `uvicorn --factory emojibot.server:build_app_from_settings`.
app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    level = set_level(settings.LOG_LEVEL)
    service = build_app_from_settings()
    _LOGGER.info(
        "Serving on 0:%d (env_mode=%s strict=%s)",
        PORT,
        settings.env_mode.value,
        settings.healthcheck_strict,
    )
    uvicorn.run(service, host=BIND_HOST, port=PORT, log_level=level)


if __name__ == "__main__":
    main()
