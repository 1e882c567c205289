"""Gunicorn configuration file.

The Management API token provider lives in process memory, so each worker
owns one. The refresher thread is started in post_fork: threads started in the
master before forking do not survive into the workers.

Run:
    gunicorn -c gunicorn.conf.py "auth0_admin.flask_app:create_app()"
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
errorlog = "-"


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Starts the worker's token refresher. With preload_app the application
    already exists; otherwise it is loaded after this hook, so the refresher
    is requested through the environment and started by create_app().
    """
    app = getattr(server.app, "callable", None)
    if app is None:
        os.environ["AUTH0_START_TOKEN_REFRESH"] = "true"
        worker.log.info("Token refresh will start when the application is loaded")
        return

    from auth0_admin.flask_app import start_token_refresh

    if start_token_refresh(app):
        worker.log.info("Started Auth0 Management API token refresh")
    else:
        worker.log.info("No Management API token provider to refresh")
