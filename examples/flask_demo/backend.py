from flask import Flask, g, jsonify, request

from examples.flask_demo import app_config
from id_token_verification import (
    IdTokenAuth,
    TokenValidator,
    cookie_token,
    posted_credential,
)


def create_app(
    validator: TokenValidator | None = None, audience: str | None = None
) -> Flask:
    """
    Create the demo app protected by Google ID tokens.

    Routes:
        GET  /api/me       Authorization: Bearer <id token>
        POST /auth/google  Google Identity Services sign-in redirect; stores
                           the ID token in a cookie
        GET  /profile      ID token read from that cookie

    Args:
        validator: Validator shared by every route. Defaults to the
            process-wide one built from the environment in app_config.
        audience: Accepted audience. Defaults to GOOGLE_CLIENT_ID.

    Returns:
        Flask: Configured Flask application instance
    """
    validator = validator or app_config.validator
    audience = audience or app_config.GOOGLE_CLIENT_ID

    api_auth = IdTokenAuth(validator, audience=audience)
    cookie_auth = IdTokenAuth(
        validator, audience=audience, source=cookie_token(app_config.SESSION_COOKIE)
    )
    signin_auth = IdTokenAuth(validator, audience=audience, source=posted_credential())

    app = Flask(__name__)
    app.config["SECRET_KEY"] = app_config.FLASK_SECRET_KEY
    api_auth.init_app(app)

    @app.get("/api/me")
    @api_auth.require()
    def me():
        """Return who the caller is, according to their ID token."""
        claims = g.id_token
        return jsonify(
            {
                "status": "success",
                "sub": claims.get("sub"),
                "email": claims.get("email"),
                "authenticated": True,
            }
        ), 200

    @app.post("/auth/google")
    @signin_auth.require()
    def google_sign_in():
        """Keep the verified credential so browser routes can use it."""
        response = jsonify({"status": "success", "email": g.id_token.get("email")})
        response.set_cookie(
            app_config.SESSION_COOKIE,
            request.form["credential"].strip(),
            httponly=True,
            secure=True,
            samesite="Lax",
        )
        return response, 200

    @app.get("/profile")
    @cookie_auth.require()
    def profile():
        claims = g.id_token
        return jsonify(
            {
                "status": "success",
                "name": claims.get("name"),
                "email": claims.get("email"),
                "authenticated": True,
            }
        ), 200

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify(
            {
                "status": "denied",
                "message": error.description,
                "authenticated": False,
            }
        ), 401

    @app.errorhandler(503)
    def unavailable(error):
        return jsonify(
            {
                "status": "error",
                "message": "Sign-in provider unavailable, try again later",
                "authenticated": False,
            }
        ), 503

    return app


if __name__ == "__main__":
    create_app().run(port=5001, debug=True)
