from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app
from utils.security import InvalidToken


def jwt_required():
    """Verify the Bearer access token and attach its principal to flask.g."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            try:
                principal = current_app.extensions["token_lifecycle"].authenticate(token)
            except InvalidToken as e:
                abort(401, description=str(e))

            g.current_principal = principal
            return fn(*args, **kwargs)

        return wrapper

    return decorator
