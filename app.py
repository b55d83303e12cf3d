import asyncio
import logging
from http import HTTPStatus

from flask import Flask, current_app, jsonify, redirect, render_template, request
from werkzeug.exceptions import HTTPException

from auth import LoginResult
from config import Settings
from errors import DuplicateAccount, ServiceNotReady, TodontError, ValidationError
from logging_setup import setup_logging
from services import AppServices

logger = logging.getLogger(__name__)

EXTENSION_KEY = "todont"


# ---------------- HELPERS ----------------
def get_services():
    return current_app.extensions[EXTENSION_KEY]


def request_data():
    """Form posts and JSON bodies are both accepted."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form


def status(code):
    return HTTPStatus(code).phrase, code


# ---------------- ERRORS ----------------
def handle_todont_error(err):
    if isinstance(err, ValidationError):
        return status(400)
    if isinstance(err, DuplicateAccount):
        logger.warning("Conflict: %s", err)
        return status(409)
    if isinstance(err, ServiceNotReady):
        return HTTPStatus.SERVICE_UNAVAILABLE.phrase, 503, {"Retry-After": "1"}
    # StoreUnavailable and anything else we raised on purpose
    logger.error("Server error: %s", err, exc_info=err)
    return status(500)


def handle_unexpected(err):
    if isinstance(err, HTTPException):
        return err
    logger.error("Unhandled error", exc_info=err)
    return status(500)


# ---------------- APP ----------------
def create_app(settings=None, services=None):
    settings = settings or Settings.from_env()
    services = services or AppServices(settings)

    app = Flask(__name__)
    app.extensions[EXTENSION_KEY] = services

    app.register_error_handler(TodontError, handle_todont_error)
    app.register_error_handler(Exception, handle_unexpected)

    # Bodies are never logged: they carry passwords.
    @app.before_request
    def log_request():
        logger.info("%s|%s|%s", request.remote_addr, request.method, request.full_path.rstrip("?"))

    # ---------------- HOME ----------------
    @app.route("/")
    def home():
        return redirect("/todont_list")

    @app.route("/todont_list")
    def todont_list():
        return render_template("todont.html")

    # ---------------- LIST ----------------
    @app.route("/todont_items")
    async def todont_items():
        tasks = await get_services().tasks.get_all()
        return jsonify(todont_items=[t.to_dict() for t in tasks])

    @app.route("/todonts/<priority>")
    async def todonts_with_priority(priority):
        tasks = await get_services().tasks.get_all_with_priority(priority)
        return jsonify(todont_items=[t.to_dict() for t in tasks])

    # ---------------- ADD ----------------
    @app.route("/add_todont", methods=["POST"])
    async def add_todont():
        data = request_data()
        await get_services().tasks.add(data.get("text"), data.get("priority"))
        return status(200)

    # ---------------- REGISTER ----------------
    @app.route("/register", methods=["GET", "POST"])
    async def register():
        if request.method == "GET":
            return render_template("register.html")

        data = request_data()
        await get_services().auth.register(data.get("username"), data.get("password"))
        return status(200)

    # ---------------- LOGIN ----------------
    @app.route("/login", methods=["GET", "POST"])
    async def login():
        if request.method == "GET":
            return render_template("login.html")

        data = request_data()
        result = await get_services().auth.login(data.get("username"), data.get("password"))
        return status(200 if result is LoginResult.VERIFIED else 401)

    return app


# ---------------- RUN ----------------
def main():
    settings = Settings.from_env()
    setup_logging(
        log_dir=settings.log_dir,
        console_level=getattr(logging, settings.log_level, logging.INFO),
    )

    services = AppServices(settings)
    # Tables exist before the first request is accepted.
    asyncio.run(services.start())

    app = create_app(settings, services)
    logger.info("Listening on %s:%s", settings.host, settings.port)
    try:
        app.run(host=settings.host, port=settings.port)
    finally:
        asyncio.run(services.close())


if __name__ == "__main__":
    main()
