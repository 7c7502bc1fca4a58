import pytest
from flask import Flask

from id_token_verification import MissingToken, bearer_token, cookie_token, posted_credential


def test_bearer_missing(app: Flask):
    with app.test_request_context("/", headers={}):
        with pytest.raises(MissingToken, match="Missing Authorization header"):
            bearer_token()


def test_bearer_ok(app: Flask):
    with app.test_request_context("/", headers={"Authorization": "Bearer abc.def.ghi"}):
        assert bearer_token() == "abc.def.ghi"


def test_bearer_scheme_is_case_insensitive(app: Flask):
    with app.test_request_context("/", headers={"Authorization": "bearer abc.def.ghi"}):
        assert bearer_token() == "abc.def.ghi"


@pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer    ", "abc.def.ghi"])
def test_bearer_rejects_malformed_headers(app: Flask, header: str):
    with app.test_request_context("/", headers={"Authorization": header}):
        with pytest.raises(MissingToken):
            bearer_token()


def test_cookie_reads_named_cookie(app: Flask):
    source = cookie_token("session_id_token")

    with app.test_request_context("/", headers={"Cookie": "session_id_token=abc.def.ghi"}):
        assert source() == "abc.def.ghi"


def test_cookie_missing(app: Flask):
    with app.test_request_context("/"):
        with pytest.raises(MissingToken, match="Missing cookie 'id_token'"):
            cookie_token()()


def test_cookie_requires_name():
    with pytest.raises(ValueError):
        cookie_token("  ")


class TestPostedCredential:
    def post(self, app: Flask, form: dict[str, str], cookie: str | None = "nonce-1"):
        headers = {"Cookie": f"g_csrf_token={cookie}"} if cookie else {}
        return app.test_request_context("/auth/google", method="POST", data=form, headers=headers)

    def test_returns_credential_when_csrf_values_match(self, app: Flask):
        with self.post(app, {"credential": "abc.def.ghi", "g_csrf_token": "nonce-1"}):
            assert posted_credential()() == "abc.def.ghi"

    def test_missing_csrf_cookie(self, app: Flask):
        with self.post(app, {"credential": "abc.def.ghi", "g_csrf_token": "nonce-1"}, cookie=None):
            with pytest.raises(MissingToken, match="No CSRF token in cookie"):
                posted_credential()()

    @pytest.mark.parametrize("form_value", ["nonce-2", None])
    def test_csrf_values_must_match(self, app: Flask, form_value):
        form = {"credential": "abc.def.ghi"}
        if form_value is not None:
            form["g_csrf_token"] = form_value

        with self.post(app, form):
            with pytest.raises(MissingToken, match="double submit"):
                posted_credential()()

    def test_missing_credential(self, app: Flask):
        with self.post(app, {"g_csrf_token": "nonce-1"}):
            with pytest.raises(MissingToken, match="Missing form field 'credential'"):
                posted_credential()()
