#!/usr/bin/env python3
"""Run the SessionVault demo application"""
import uvicorn

from sessionvault.core.config import settings


def main():
    uvicorn.run(
        "sessionvault.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    main()
