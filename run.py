"""
run.py

Starts the Bula service with Uvicorn for local development:
    python run.py

The mobile app points at http://<this machine>:8000/bula/...
No business logic should be written here.
"""

import uvicorn


if __name__ == "__main__":
    # host="0.0.0.0" allows the phone on the same network to connect
    # reload=True enables auto-reload during development
    uvicorn.run(
        "bula_service.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
