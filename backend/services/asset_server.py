"""
Loopback static server for batch renders.

Serves files under the public root so the on-demand compositor can fetch
fonts and blog images over HTTP while a build runs. Binds 127.0.0.1 on an
ephemeral port and runs uvicorn in a background thread.
"""
import logging
import socket
import threading
import time
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response

from services.share_card_static import LocalAssetSource

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".woff2": "font/woff2",
    ".woff": "font/woff",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".json": "application/json",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
NO_STORE = {"Cache-Control": "no-store"}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


def build_asset_app(root: Path) -> FastAPI:
    source = LocalAssetSource(root)
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/{asset_path:path}")
    def serve_asset(asset_path: str):
        file_path = source.resolve(f"/{asset_path}")
        if file_path is None or not file_path.is_file():
            return Response("Not found", status_code=404, headers=NO_STORE)
        return Response(file_path.read_bytes(), media_type=content_type_for(file_path), headers=NO_STORE)

    return app


class LocalAssetServer:
    """
    Context manager around a uvicorn server on a loopback socket.

    The socket is bound before the thread starts, so `origin` is valid as
    soon as `start()` returns.
    """

    def __init__(self, root: Path, startup_timeout: float = 10.0):
        self.root = Path(root)
        self.startup_timeout = startup_timeout
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self.port: Optional[int] = None

    @property
    def origin(self) -> str:
        if self.port is None:
            raise RuntimeError("asset server is not running")
        return f"http://127.0.0.1:{self.port}"

    def start(self) -> "LocalAssetServer":
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self.port = self._socket.getsockname()[1]

        config = uvicorn.Config(build_asset_app(self.root), log_level="warning", access_log=False)
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [self._socket]},
            name="share-card-assets",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.stop()
                raise RuntimeError("asset server failed to start")
            time.sleep(0.02)
        logger.info("[asset-server] serving %s at %s", self.root, self.origin)
        return self

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=self.startup_timeout)
        if self._socket is not None:
            self._socket.close()
        if self.port is not None:
            logger.info("[asset-server] stopped %s", self.origin)
        self._server = None
        self._thread = None
        self._socket = None
        self.port = None

    def __enter__(self) -> "LocalAssetServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
