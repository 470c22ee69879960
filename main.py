"""
Review Router - Web Server Entry Point
======================================

Run this to start the API:
    python main.py

Then point the landing, admin and generator pages at http://127.0.0.1:8000.

Configuration is read from the environment (or a .env file):
    BLOB_STORE_URL / BLOB_STORE_TOKEN   remote blob store (local SQLite when unset)
    HOST / PORT / LOG_LEVEL             server settings
"""

import uvicorn

from review_router.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings()

    print("\n" + "=" * 50)
    print("   Review Router - API Server")
    print("=" * 50)
    print(f"\n   Starting server at http://{settings.server.host}:{settings.server.port}")
    print("   Press Ctrl+C to stop\n")

    for issue in settings.validate():
        print(f"   {issue}")

    uvicorn.run(
        "review_router.web.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
        log_level=settings.server.log_level.lower()
    )


if __name__ == "__main__":
    main()
