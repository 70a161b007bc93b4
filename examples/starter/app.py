"""Starter — the layout a new trellis project starts from.

One controller, a route table, and a layout-wrapped view. The port comes
from ``PORT``; ``APP_DEBUG=1`` turns on detailed error pages.

Run:
    PORT=8080 APP_DEBUG=1 python app.py
"""

import logging
from pathlib import Path

from trellis import App, AppConfig, Request, Response, escape

TEMPLATES_DIR = Path(__file__).parent / "templates"

logger = logging.getLogger("starter")


class MainController:
    """Controller methods are plain ``(request, response, args)`` callables."""

    def __init__(self, app: App) -> None:
        self.view = app.renderer

    def home(self, request: Request, response: Response, args: dict[str, str]) -> Response:
        return self.view.render_to(response, "home.html", {"title": "Homepage"})

    def api(self, request: Request, response: Response, args: dict[str, str]) -> Response:
        response.write("Starter API")
        return response.set_header("Content-Type", "text/plain; charset=utf-8")

    def status(self, request: Request, response: Response, args: dict[str, str]) -> Response:
        return response.write_json({"status": "ok"})

    def hello(self, request: Request, response: Response, args: dict[str, str]) -> Response:
        name = escape(args.get("name", "stranger"))
        variables = {"title": f"Hello {name}", "name": name}
        return self.view.render_to(response, "hello.html", variables)


def register_routes(app: App) -> None:
    controller = MainController(app)

    app.get("/", controller.home, name="home")
    app.get("/api", controller.api, name="api")
    with app.group("/api") as api:
        api.get("/status", controller.status, name="status")
    app.get("/hello[/{name}]", controller.hello, name="hello")


def create_app(config: AppConfig | None = None) -> App:
    app = App(config or AppConfig.from_env(template_dir=TEMPLATES_DIR, layout="layout.html"))
    app.add_error_middleware(log_error_details=True)
    register_routes(app)

    @app.on_startup
    def announce() -> None:
        logger.info("Routes: %s", ", ".join(r.pattern for r in app.router.routes))

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run()
