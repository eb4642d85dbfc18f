from unittest.mock import MagicMock

from docker_api.core.config import RegistryLogin, Settings
from docker_api.domain.image import replacement_image
from docker_api.domain.registry import RegistryCredentials
from docker_api.services.registry_auth import RegistryAuthResolver


def _resolver(**overrides):
    values = {"GHCR_USERNAME": None, "GHCR_PASSWORD": None, "REGISTRY_AUTH": {}}
    values.update(overrides)
    settings = Settings(_env_file=None, **values)
    return RegistryAuthResolver(lambda: settings)


def test_ghcr_images_use_configured_credentials():
    resolver = _resolver(GHCR_USERNAME="octocat", GHCR_PASSWORD="token")

    credentials = resolver.resolve(replacement_image("ghcr.io/org/app:v1"))

    assert credentials == RegistryCredentials("ghcr.io", "octocat", "token")
    assert credentials.to_auth_config() == {
        "username": "octocat",
        "password": "token",
        "serveraddress": "ghcr.io",
    }


def test_public_images_pull_anonymously():
    resolver = _resolver(GHCR_USERNAME="octocat", GHCR_PASSWORD="token")

    assert resolver.resolve(replacement_image("nginx:1.25")) is None
    assert resolver.resolve(replacement_image("myrepo/app:v1")) is None


def test_ghcr_without_username_pulls_anonymously():
    assert _resolver().resolve(replacement_image("ghcr.io/org/app")) is None


def test_extra_registries_from_lookup_table():
    resolver = _resolver(
        REGISTRY_AUTH={"registry.example.com:5000": RegistryLogin(username="ci", password="secret")}
    )

    credentials = resolver.resolve(replacement_image("registry.example.com:5000/repo:old"))

    assert credentials == RegistryCredentials("registry.example.com:5000", "ci", "secret")


def test_provider_is_consulted_on_every_call():
    current = {"settings": Settings(_env_file=None, GHCR_USERNAME=None)}
    resolver = RegistryAuthResolver(lambda: current["settings"])
    image = replacement_image("ghcr.io/org/app")

    assert resolver.resolve(image) is None

    current["settings"] = Settings(_env_file=None, GHCR_USERNAME="late", GHCR_PASSWORD="pw")

    assert resolver.resolve(image).username == "late"


def test_default_provider_picks_up_rotated_environment(monkeypatch):
    monkeypatch.setenv("GHCR_SERVER", "ghcr.io")
    monkeypatch.setenv("GHCR_USERNAME", "first")
    monkeypatch.setenv("GHCR_PASSWORD", "pw-1")
    resolver = RegistryAuthResolver()
    image = replacement_image("ghcr.io/org/app")

    assert resolver.resolve(image).username == "first"

    monkeypatch.setenv("GHCR_USERNAME", "second")
    monkeypatch.setenv("GHCR_PASSWORD", "pw-2")

    credentials = resolver.resolve(image)
    assert credentials.username == "second"
    assert credentials.password == "pw-2"


def test_missing_username_warns_on_the_request_logger():
    log = MagicMock()

    assert _resolver().resolve(replacement_image("ghcr.io/org/app"), log) is None

    log.warning.assert_called_once()
    assert "ghcr.io" in log.warning.call_args.args[0]


def test_credentials_repr_hides_password():
    assert "secret" not in repr(RegistryCredentials("ghcr.io", "u", "secret"))
