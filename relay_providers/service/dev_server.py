"""Local development entry point (``relay-dev-server``)."""
from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

import uvicorn

from relay_providers.base.logging import get_logger, log_event
from relay_providers.config.defaults import PROVIDER_SERVICE_DEFAULT_HOST, PROVIDER_SERVICE_DEFAULT_PORT

APP_IMPORT_PATH = "relay_providers.service.app:app"


def server_options(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Read host, port and reload from ``PROVIDER_SERVICE_*``.

    An unparsable port falls back to the default; reload is on unless
    ``PROVIDER_SERVICE_RELOAD`` is set to something other than ``true``.
    """
    env = os.environ if env is None else env
    try:
        port = int(env.get("PROVIDER_SERVICE_PORT") or PROVIDER_SERVICE_DEFAULT_PORT)
    except ValueError:
        port = PROVIDER_SERVICE_DEFAULT_PORT
    reload_raw = env.get("PROVIDER_SERVICE_RELOAD")
    return {
        "host": env.get("PROVIDER_SERVICE_HOST") or PROVIDER_SERVICE_DEFAULT_HOST,
        "port": port,
        "reload": reload_raw is None or reload_raw.strip().lower() == "true",
    }


def main() -> None:
    options = server_options()
    log_event(get_logger("service.dev"), "service.dev_server.start", **options)
    uvicorn.run(APP_IMPORT_PATH, **options)


if __name__ == "__main__":
    main()
