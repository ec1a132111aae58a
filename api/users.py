from __future__ import annotations

from flask import Blueprint, jsonify, g

from models.schemas.auth import PrincipalOutSchema
from utils.decorators import jwt_required

bp = Blueprint("users", __name__)

principal_out_schema = PrincipalOutSchema()


@bp.get("/me")
@jwt_required()
def me():
    """
    Principal of the presented access token
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Missing, forged or expired access token
    """
    return jsonify({"data": principal_out_schema.dump({"login": g.current_principal})}), 200
