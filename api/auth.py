"""
Authentication blueprint:
- POST /auth          (alias of /auth/login)
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The access token travels in the JSON body; the refresh token only ever in an
HttpOnly cookie. All decisions are made by the TokenLifecycleManager, this
module only moves values between HTTP and the manager.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.auth import LoginSchema, AccessTokenOutSchema

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
access_token_out_schema = AccessTokenOutSchema()


def _lifecycle():
    return current_app.extensions["token_lifecycle"]


def _set_refresh_cookie(response, minted):
    cfg = current_app.config
    response.set_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        minted.token,
        max_age=int(cfg["REFRESH_TOKEN_TTL"].total_seconds()),
        expires=minted.expires_at,
        httponly=True,
        secure=cfg["REFRESH_COOKIE_SECURE"],
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
    )


@bp.post("")
@bp.post("/login")
def login():
    """
    Login: returns accessToken in the body and sets the refreshToken cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             login: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (accessToken in body, refreshToken cookie)
      400:
        description: login or password missing
      401:
        description: Invalid credentials
    """
    payload = login_schema.load(request.get_json(silent=True) or {})
    issued = _lifecycle().login(payload.get("login"), payload.get("password"))

    response = jsonify({"data": access_token_out_schema.dump(issued.access)})
    _set_refresh_cookie(response, issued.refresh)
    return response, 200


@bp.post("/refresh")
def refresh():
    """
    Mint a new access token from the refreshToken cookie
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (new accessToken)
      401:
        description: Refresh token missing, unknown or expired
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    minted = _lifecycle().refresh(token)
    return jsonify({"data": access_token_out_schema.dump(minted)}), 200


@bp.post("/logout")
def logout():
    """
    Logout: drops the refresh session and clears the cookie
    ---
    tags:
      - Auth
    responses:
      204:
        description: ""
    """
    cookie_name = current_app.config["REFRESH_COOKIE_NAME"]
    _lifecycle().logout(request.cookies.get(cookie_name))

    response = current_app.make_response(("", 204))
    response.delete_cookie(
        cookie_name,
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite=current_app.config["REFRESH_COOKIE_SAMESITE"],
    )
    return response
