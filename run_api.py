#!/usr/bin/env python3
"""
Script to run the Local Library web server.
"""

import uvicorn

from api.config import config
from utilities.config import config as catalog_config


def main():
    """Run the web server."""
    print("Starting Local Library")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Debug: {config.debug}")
    print(f"Database: {catalog_config.mongodb_database}")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
