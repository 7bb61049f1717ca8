#!/usr/bin/env python3
"""
Main entry point for the RecipeShare API server.

Run:
    python main.py
"""
import uvicorn

from recipeshare import config


if __name__ == "__main__":
    uvicorn.run(
        "recipeshare.app:app",
        host=config.HOST,
        port=config.PORT,
        reload=not config.IS_PRODUCTION,
    )
