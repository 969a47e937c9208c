"""Field Ledger HTTP entrypoint

Usage:
    python api.py                # serve on API_HOST:API_PORT from env.yaml
    python api.py --reload       # development, restart on code changes
"""

import argparse
import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)


def main():
    parser = argparse.ArgumentParser(description="Serve the Field Ledger API")
    parser.add_argument("--host", default=ApplicationConfig.API_HOST)
    parser.add_argument("--port", type=int, default=ApplicationConfig.API_PORT)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    uvicorn.run(
        "api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=str(ApplicationConfig.LOG_LEVEL).lower(),
    )


if __name__ == "__main__":
    main()
