from app.core.config import DEFAULT_VERSION, Settings
from app.core.storage import SupabaseStorageUploader
from app.routes.predict import get_image_stager
from app.services.replicate_client import ReplicateClient, ReplicateFileUploader


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("REPLICATE_API_TOKEN", " r8_abc ")
    monkeypatch.setenv("ALLOWED_ORIGIN", "https://proxy-demo.web.app")
    monkeypatch.setenv("REPLICATE_API_URL", "https://replicate.internal/v1/")
    monkeypatch.setenv("STAGING_BACKEND", "Supabase")
    monkeypatch.setenv("STAGING_PREFIX", "/tmp-images/")
    monkeypatch.setenv("REQUEST_TIMEOUT", "45")
    monkeypatch.setenv("EXPOSE_INTERNAL_ERRORS", "yes")

    settings = Settings.from_env(str(tmp_path / "missing.env"))

    assert settings.replicate_api_token == "r8_abc"
    assert settings.allowed_origin == "https://proxy-demo.web.app"
    assert settings.replicate_api_url == "https://replicate.internal/v1"
    assert settings.staging_backend == "supabase"
    assert settings.staging_prefix == "tmp-images"
    assert settings.request_timeout == 45.0
    assert settings.expose_internal_errors is True


def test_defaults(monkeypatch, tmp_path):
    for name in ("REPLICATE_API_TOKEN", "ALLOWED_ORIGIN", "STAGING_BACKEND", "REQUEST_TIMEOUT",
                 "EXPOSE_INTERNAL_ERRORS", "DEFAULT_MODEL_VERSION", "DEFAULT_OUTPUT_FORMAT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env(str(tmp_path / "missing.env"))

    assert settings.replicate_api_token == ""
    assert settings.default_version == DEFAULT_VERSION
    assert settings.default_format == "glb"
    assert settings.staging_backend == "replicate"
    assert settings.request_timeout is None
    assert settings.expose_internal_errors is False


def test_token_is_not_in_repr():
    assert "r8_secret" not in repr(Settings(replicate_api_token="r8_secret"))


def test_staging_backend_selection():
    replicate_settings = Settings(replicate_api_token="r8_abc")
    supabase_settings = Settings(replicate_api_token="r8_abc", staging_backend="supabase")

    default_stager = get_image_stager(replicate_settings, ReplicateClient(replicate_settings))
    supabase_stager = get_image_stager(supabase_settings, ReplicateClient(supabase_settings))

    assert isinstance(default_stager.uploader, ReplicateFileUploader)
    assert isinstance(supabase_stager.uploader, SupabaseStorageUploader)
