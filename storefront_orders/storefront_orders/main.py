"""Main entry point for the Order Service."""

import os

import uvicorn

from storefront_orders.server import app

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
