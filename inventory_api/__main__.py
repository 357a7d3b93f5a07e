"""Run the API with uvicorn: ``python -m inventory_api``."""

import os

import uvicorn

from inventory_api.app import create_app


def main() -> None:
    uvicorn.run(
        create_app(),
        host=os.environ.get("INVENTORY_HOST", "127.0.0.1"),
        port=int(os.environ.get("INVENTORY_PORT", "8000")),
    )


if __name__ == "__main__":
    main()
