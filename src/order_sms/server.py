"""
Local development server.

Serves the same routes as the Lambda entry point on ``PORT`` (default 3000)
so Shopify webhooks can be pointed at a tunnel during development.
"""

from dotenv import load_dotenv
from flask import Flask, Response, request

from .app import dispatch
from .context import AppContext, build_context
from .utils.logger import get_logger

logger = get_logger("server")


def create_app(ctx: AppContext) -> Flask:
    app = Flask(__name__)
    app.config["ORDER_SMS_CONTEXT"] = ctx

    @app.route("/", defaults={"path": ""}, methods=["GET", "POST"])
    @app.route("/<path:path>", methods=["GET", "POST"])
    def handle(path):
        result = dispatch(
            request.method,
            request.path,
            request.args.to_dict(),
            request.get_data(as_text=True),
            app.config["ORDER_SMS_CONTEXT"],
        )
        headers = result.get("headers", {})
        return Response(
            result.get("body", ""),
            status=result["statusCode"],
            content_type=headers.get("Content-Type"),
        )

    return app


def main() -> None:
    load_dotenv()
    ctx = build_context()
    app = create_app(ctx)
    port = ctx.settings.port
    logger.info("server.start", extra={"url": f"http://localhost:{port}"})
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
