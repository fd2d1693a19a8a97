"""
ASGI entry point for the voice command server.

Used by uvicorn / gunicorn:

    uvicorn server.asgi:app --app-dir backend

Environment is read from a local .env (python-dotenv) before the app
factory loads AppConfig.
"""

from dotenv import load_dotenv

load_dotenv()

from server.app import create_app  # pylint: disable=wrong-import-position

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "server.asgi:app",
        host="0.0.0.0",
        port=8000,
        log_level=app.state.config.log_level.lower(),
        reload=app.state.config.env == "dev",
    )
