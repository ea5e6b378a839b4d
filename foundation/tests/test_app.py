from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

from conftest import IDS_INVERSE, IDS_PRIME, IDS_RANDOM, SettingsHolder, make_settings
from foundation.core.app import App
from foundation.core.auth import Auth
from foundation.core.exceptions import (
    ConfigurationMissingError,
    ConflictError,
    NoSupportedLocaleError,
    TemplateManagerSetupError,
    UnauthorizedError,
)
from foundation.core.flash import Flash
from foundation.core.mail import Mailer, SmtpTransport
from foundation.core.templates import TemplateManager


def test_nothing_is_built_on_construction(session):
    provider = MagicMock(return_value=make_settings())
    App(session=session, settings_provider=provider)

    provider.assert_not_called()


def test_flash_is_memoized(app, session):
    assert isinstance(app.flash(), Flash)
    assert app.flash() is app.flash()
    assert app.flash().session is session


def test_templates_are_built_once(app):
    with patch("foundation.core.app.TemplateManager", wraps=TemplateManager) as manager_cls:
        first = app.templates()
        second = app.templates()

    assert first is second
    assert manager_cls.call_count == 1


def test_templates_receive_app_global(app):
    assert app.templates().env.globals["app"] is app


def test_missing_templates_directory_is_retried(session, tmp_path):
    holder = SettingsHolder(make_settings(TEMPLATES_PATH=str(tmp_path / "missing")))
    app = App(session=session, settings_provider=holder)

    with pytest.raises(TemplateManagerSetupError):
        app.templates()

    (tmp_path / "missing").mkdir()
    assert isinstance(app.templates(), TemplateManager)


def test_template_cache_goes_below_framework_storage(session, templates_dir, tmp_path):
    storage = tmp_path / "framework"
    app = App(
        session=session,
        settings_provider=lambda: make_settings(TEMPLATES_PATH=str(templates_dir)),
        framework_storage_path=str(storage),
    )

    assert app.templates().render("hello.html", {"name": "cache"}) == "Hello cache!"
    assert (storage / "views" / "cache").is_dir()


def test_templates_use_configured_charset(app, settings_holder, templates_dir):
    (templates_dir / "latin.html").write_bytes("F\u00fcr {{ name }}".encode("iso-8859-1"))
    settings_holder.update(APP_CHARSET="iso-8859-1")

    assert app.templates().render("latin.html", {"name": "Jane"}) == "F\u00fcr Jane"


def test_view_renders_html_response(app):
    response = app.view("hello.html", {"name": "World"})

    assert response.status_code == 200
    assert response.body == b"Hello World!"
    assert response.media_type == "text/html"


def test_view_can_drain_flash_messages(app):
    app.flash().success("Saved")
    app.flash().danger("Careful")

    body = app.view("flash.html").body.decode()

    assert "[success] Saved" in body
    assert "[danger] Careful" in body
    assert not app.flash().has_any()


def test_ids_missing_configuration_raises_then_recovers(app, settings_holder):
    with pytest.raises(ConfigurationMissingError) as exc_info:
        app.ids()
    assert exc_info.value.parameter == "SECURITY_IDS_ALPHABET"

    settings_holder.update(
        SECURITY_IDS_ALPHABET="0123456789",
        SECURITY_IDS_PRIME=IDS_PRIME,
        SECURITY_IDS_INVERSE=IDS_INVERSE,
        SECURITY_IDS_RANDOM=IDS_RANDOM,
    )

    codec = app.ids()
    assert codec.decode(codec.encode(42)) == 42
    assert app.ids() is codec


def test_ids_configuration_is_read_once_built(app, settings_holder):
    settings_holder.update(
        SECURITY_IDS_ALPHABET="0123456789",
        SECURITY_IDS_PRIME=IDS_PRIME,
        SECURITY_IDS_INVERSE=IDS_INVERSE,
        SECURITY_IDS_RANDOM=IDS_RANDOM,
    )
    codec = app.ids()

    settings_holder.update(SECURITY_IDS_ALPHABET=None)
    assert app.ids() is codec


def test_mail_is_absent_without_transport(app):
    assert app.mail() is None
    assert app.mail() is None


def test_mail_is_built_once_transport_is_configured(app, settings_holder):
    assert app.mail() is None

    settings_holder.update(MAIL_TRANSPORT="smtp", MAIL_HOST="mail.example.com", MAIL_PORT=587)

    mailer = app.mail()
    assert isinstance(mailer, Mailer)
    assert isinstance(mailer.transport, SmtpTransport)
    assert mailer.transport.port == 587
    assert app.mail() is mailer


def test_locales_without_configuration_raise(app):
    with pytest.raises(NoSupportedLocaleError):
        app.locales()

    with pytest.raises(ConfigurationMissingError):
        app.locales()


def test_locale_negotiation_uses_request_header(session):
    request = MagicMock()
    request.headers = {"accept-language": "de-AT,de;q=0.9,en;q=0.5"}
    app = App(
        request=request,
        session=session,
        settings_provider=lambda: make_settings(APP_LOCALES="en-US,de-DE"),
    )

    assert app.locale() == "de-DE"
    assert app.locales().default == "en-US"


def test_db_requires_configuration(app):
    with pytest.raises(ConfigurationMissingError) as exc_info:
        app.db()
    assert exc_info.value.parameter == "DATABASE_URL"


def test_db_session_is_shared_and_closed(app, settings_holder, database_url):
    settings_holder.update(DATABASE_URL=database_url)

    db = app.db()
    assert app.db() is db
    assert db.execute(text("SELECT 1")).scalar() == 1

    with patch.object(db, "close") as close:
        app.close()
    close.assert_called_once()
    assert app.db() is not db


def test_close_without_db_does_not_open_one(session):
    provider = MagicMock(return_value=make_settings())
    App(session=session, settings_provider=provider).close()

    provider.assert_not_called()


def test_auth_uses_request_db_session(app, settings_holder, database_url):
    settings_holder.update(DATABASE_URL=database_url)

    auth = app.auth()
    assert isinstance(auth, Auth)
    assert auth.db is app.db()
    assert app.auth() is auth


def test_auth_login_flow(app, session, settings_holder, database_url):
    settings_holder.update(DATABASE_URL=database_url)
    auth = app.auth()

    user = auth.register("jane@example.com", "jane", "s3cret")
    assert not auth.is_logged_in()

    with pytest.raises(UnauthorizedError):
        auth.login("jane", "wrong")

    assert auth.login("jane@example.com", "s3cret").id == user.id
    assert auth.is_logged_in()
    assert auth.user_id() == user.id
    assert auth.user().username == "jane"

    with pytest.raises(ConflictError):
        auth.register("jane@example.com", "other", "pw")

    auth.logout()
    assert not auth.is_logged_in()
    assert auth.user() is None


def test_missing_session_is_reported(settings_holder):
    app = App(settings_provider=settings_holder)

    with pytest.raises(ConfigurationMissingError):
        app.flash()


def test_url_helpers(session):
    app = App(
        session=session,
        settings_provider=lambda: make_settings(APP_PUBLIC_URL="https://example.com/shop/"),
        app_storage_path="/srv/storage/",
    )

    assert app.url("/users") == "https://example.com/shop/users"
    assert app.url("  users ") == "https://example.com/shop/users"
    assert app.url("") == "https://example.com/shop/"
    assert app.storage_path("secret/keys.txt") == "/srv/storage/secret/keys.txt"
    assert app.root_path() == "/shop"


def test_redirect_targets_public_url(session):
    app = App(
        session=session,
        settings_provider=lambda: make_settings(APP_PUBLIC_URL="https://example.com"),
    )

    response = app.redirect("/login")

    assert response.status_code == 303
    assert response.headers["location"] == "https://example.com/login"


def test_request_helpers_without_request(app):
    assert app.current_route() is None
    assert app.current_url() is None
    assert app.is_https() is False
    assert app.client_ip() is None
