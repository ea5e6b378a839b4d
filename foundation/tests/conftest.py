import pytest

from foundation.config import Settings
from foundation.core.app import App
from foundation.db.database import Base, get_engine

# Parameters from the Optimus documentation: 1580030173 * 59260789 = 1 (mod 2^31)
IDS_PRIME = 1580030173
IDS_INVERSE = 59260789
IDS_RANDOM = 1163945558

UNCONFIGURED = {
    "APP_PUBLIC_URL": "",
    "APP_LOCALES": "",
    "FRAMEWORK_STORAGE_PATH": None,
    "DATABASE_URL": None,
    "DB_DRIVER": None,
    "MAIL_TRANSPORT": None,
    "SECURITY_IDS_ALPHABET": None,
    "SECURITY_IDS_PRIME": None,
    "SECURITY_IDS_INVERSE": None,
    "SECURITY_IDS_RANDOM": None,
}


def make_settings(**overrides) -> Settings:
    """Settings with every optional collaborator unconfigured unless overridden"""
    values = dict(UNCONFIGURED)
    values.update(overrides)
    return Settings(**values)


class SettingsHolder:
    """Mutable settings source, so tests can change configuration between accesses"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def __call__(self) -> Settings:
        return self.settings

    def update(self, **overrides) -> None:
        self.settings = self.settings.model_copy(update=overrides)


@pytest.fixture
def session():
    """In-memory stand-in for a client session"""
    return {}


@pytest.fixture
def templates_dir(tmp_path):
    directory = tmp_path / "views"
    directory.mkdir()
    (directory / "hello.html").write_text("Hello {{ name }}!")
    (directory / "flash.html").write_text(
        "{% for severity, message in app.flash().get_all().items() %}"
        "[{{ severity }}] {{ message }}\n"
        "{% endfor %}"
    )
    (directory / "broken.html").write_text("{% if %}")
    return directory


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'test.db'}"
    Base.metadata.create_all(bind=get_engine(url))
    return url


@pytest.fixture
def settings_holder(templates_dir):
    return SettingsHolder(make_settings(TEMPLATES_PATH=str(templates_dir)))


@pytest.fixture
def app(session, settings_holder):
    coordinator = App(session=session, settings_provider=settings_holder)
    yield coordinator
    coordinator.close()
