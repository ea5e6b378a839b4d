"""
Per-request application coordinator.

An ``App`` is created for every request. It exposes the request's
collaborators (flash messages, templates, mail, ID codec, locales, database,
authentication) through accessor methods. Each collaborator sits in a
``Lazy`` slot and is built on first access from the configuration as it
stands at that moment, then reused for the rest of the request.
"""

import os
from typing import Any, Callable, Dict, MutableMapping, Optional
from urllib.parse import unquote, urlparse

from fastapi import Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from foundation.config import Settings, get_settings
from foundation.core.auth import Auth
from foundation.core.exceptions import ConfigurationMissingError
from foundation.core.flash import Flash
from foundation.core.i18n import Locales, build_locales
from foundation.core.ids import IdCodec, build_ids
from foundation.core.lazy import Lazy
from foundation.core.logging import get_logger
from foundation.core.mail import Mailer, build_mailer
from foundation.core.templates import TEMPLATES_CACHE_SUBFOLDER, TemplateManager
from foundation.db.database import open_session

logger = get_logger("foundation.app")


def _normalize_path(path: str) -> str:
    return "/" + path.strip().lstrip("/")


class App:
    """Main application coordinator for a single request"""

    def __init__(
        self,
        request: Optional[Request] = None,
        session: Optional[MutableMapping] = None,
        settings_provider: Callable[[], Settings] = get_settings,
        app_storage_path: Optional[str] = None,
        templates_path: Optional[str] = None,
        framework_storage_path: Optional[str] = None,
    ):
        self.request = request
        self._session = session
        self._settings_provider = settings_provider
        self._app_storage_path = app_storage_path
        self._templates_path = templates_path
        self._framework_storage_path = framework_storage_path

        self._flash: Lazy[Flash] = Lazy(self._build_flash, name="flash")
        self._templates: Lazy[TemplateManager] = Lazy(self._build_templates, name="templates")
        self._mail: Lazy[Mailer] = Lazy(self._build_mail, name="mail")
        self._ids: Lazy[IdCodec] = Lazy(self._build_ids, name="ids")
        self._locales: Lazy[Locales] = Lazy(self._build_locales, name="locales")
        self._db: Lazy[Session] = Lazy(self._build_db, name="db")
        self._auth: Lazy[Auth] = Lazy(self._build_auth, name="auth")

    @property
    def settings(self) -> Settings:
        return self._settings_provider()

    @property
    def session(self) -> MutableMapping:
        """
        The session of the current client

        Raises:
            ConfigurationMissingError: If neither a session nor a request
                with session support was given
        """
        if self._session is not None:
            return self._session
        if self.request is not None and "session" in self.request.scope:
            return self.request.session
        raise ConfigurationMissingError(
            message="No session available: is SessionMiddleware installed?",
            parameter="SESSION_SECRET",
        )

    # Builders

    def _build_flash(self) -> Flash:
        return Flash(self.session)

    def _build_templates(self) -> TemplateManager:
        settings = self.settings
        framework_storage_path = self._framework_storage_path or settings.FRAMEWORK_STORAGE_PATH
        cache_path = (
            os.path.join(framework_storage_path, TEMPLATES_CACHE_SUBFOLDER)
            if framework_storage_path
            else None
        )

        manager = TemplateManager(
            templates_path=self._templates_path or settings.TEMPLATES_PATH,
            cache_path=cache_path,
            auto_reload=settings.APP_DEBUG,
            charset=settings.APP_CHARSET,
        )
        manager.add_global("app", self)
        return manager

    def _build_mail(self) -> Optional[Mailer]:
        return build_mailer(self.settings)

    def _build_ids(self) -> IdCodec:
        return build_ids(self.settings)

    def _build_locales(self) -> Locales:
        return build_locales(self.settings)

    def _build_db(self) -> Session:
        return open_session(self.settings)

    def _build_auth(self) -> Auth:
        return Auth(self.session, self.db())

    # Collaborators

    def flash(self) -> Flash:
        """Return the flash message handler"""
        return self._flash.get()

    def templates(self) -> TemplateManager:
        """Return the template manager, e.g. to add globals or filters"""
        return self._templates.get()

    def mail(self) -> Optional[Mailer]:
        """Return the mailer, or ``None`` if no mail transport is configured"""
        return self._mail.get()

    def ids(self) -> IdCodec:
        """Return the codec for obfuscating IDs in public URLs"""
        return self._ids.get()

    def locales(self) -> Locales:
        """Return the supported locales"""
        return self._locales.get()

    def db(self) -> Session:
        """Return the database session for this request"""
        return self._db.get()

    def auth(self) -> Auth:
        """Return the authentication component"""
        return self._auth.get()

    # Request helpers

    def view(self, view_name: str, data: Optional[Dict[str, Any]] = None, status_code: int = 200) -> HTMLResponse:
        """Render the named template into an HTML response"""
        content = self.templates().render(view_name, data)
        return HTMLResponse(content=content, status_code=status_code)

    def url(self, requested_path: str) -> str:
        """Return the public URL for a path below the application root"""
        return self.settings.ROOT_URL + _normalize_path(requested_path)

    def storage_path(self, requested_path: str) -> str:
        """Return the path of a file or folder in the application's private storage"""
        root = self._app_storage_path or self.settings.APP_STORAGE_PATH
        return root.rstrip("/") + _normalize_path(requested_path)

    def redirect(self, target_path: str, status_code: int = 303) -> RedirectResponse:
        return RedirectResponse(url=self.url(target_path), status_code=status_code)

    def root_path(self) -> str:
        return unquote(urlparse(self.settings.ROOT_URL).path).rstrip("/")

    def current_route(self) -> Optional[str]:
        """Return the route of the current request relative to the application root"""
        if self.request is None:
            return None
        path = self.request.url.path
        root = self.root_path()
        if root and (path == root or path.startswith(root + "/")):
            path = path[len(root):]
        return path or "/"

    def current_url(self) -> Optional[str]:
        route = self.current_route()
        if route is None:
            return None
        return self.settings.ROOT_URL + route

    def is_https(self) -> bool:
        return self.request is not None and self.request.url.scheme == "https"

    def client_ip(self) -> Optional[str]:
        if self.request is None or self.request.client is None:
            return None
        return self.request.client.host

    def locale(self) -> str:
        """Return the supported locale that best matches the request's Accept-Language"""
        header = self.request.headers.get("accept-language") if self.request is not None else None
        return self.locales().negotiate(header)

    def close(self) -> None:
        """Release the resources this coordinator opened"""
        db = self._db.peek()
        if db is not None:
            db.close()
            self._db.reset()
            logger.debug("Database session closed")
