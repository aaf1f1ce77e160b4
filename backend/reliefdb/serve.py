import os

import uvicorn


def main() -> None:
    host = os.getenv("RELIEFDB_HOST", "0.0.0.0")
    port = int(os.getenv("RELIEFDB_PORT", "8080"))
    reload_enabled = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes", "on"}
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    uvicorn.run(
        "reliefdb.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=log_level,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
