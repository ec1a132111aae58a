from marshmallow import Schema, fields, EXCLUDE


class LoginSchema(Schema):
    """Emptiness is checked by the lifecycle manager, not here."""

    class Meta:
        unknown = EXCLUDE

    login = fields.String(allow_none=True)
    password = fields.String(allow_none=True, load_only=True)


class AccessTokenOutSchema(Schema):
    access_token = fields.String(attribute="token", data_key="accessToken")
    expires_at = fields.DateTime(data_key="expiresAt")


class PrincipalOutSchema(Schema):
    login = fields.String()
