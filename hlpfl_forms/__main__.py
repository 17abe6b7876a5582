"""Run the API server: ``python -m hlpfl_forms``."""

import uvicorn

from hlpfl_forms.core import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "hlpfl_forms.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
