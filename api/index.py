"""Vercel ASGI function entrypoint for the conversion service."""

from evangelist.main import app as inner_app


class StripPrefix:
    """Serve the app below ``prefix`` by trimming it from incoming paths."""

    def __init__(self, app, prefix: str):
        self.app = app
        self.prefix = prefix.rstrip("/")

    async def __call__(self, scope, receive, send):
        path = scope.get("path", "")
        if scope["type"] in ("http", "websocket") and (path == self.prefix or path.startswith(self.prefix + "/")):
            scope = {**scope, "path": path[len(self.prefix):] or "/"}
        await self.app(scope, receive, send)


app = StripPrefix(inner_app, "/api")
