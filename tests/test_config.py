import pytest

from core.config import CosignerConfig, get_secret, load_config

ENV_VARS = (
    "COSIGNER_CONFIG",
    "RPC_URL",
    "SAFE_SERVICE_URL",
    "ORACLE_MODEL",
    "ORACLE_TIMEOUT_SEC",
    "HTTP_TIMEOUT_SEC",
    "RECEIPT_TIMEOUT_SEC",
    "REQUIRE_PENDING_TX",
    "COSIGNER_PORT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a stray config/cosigner.yaml in the checkout out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults():
    cfg = CosignerConfig.load()
    assert cfg.port == 3000
    assert cfg.oracle_model == "gpt-3.5-turbo"
    assert cfg.require_pending_transaction is False


def test_yaml_then_env(monkeypatch, tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("rpc_url: http://node:8545\noracle_timeout_sec: 5\nport: 8080\n")
    monkeypatch.setenv("COSIGNER_PORT", "9000")
    monkeypatch.setenv("REQUIRE_PENDING_TX", "true")
    cfg = CosignerConfig.load(str(path))
    assert cfg.rpc_url == "http://node:8545"
    assert cfg.oracle_timeout_sec == 5.0
    assert cfg.port == 9000
    assert cfg.require_pending_transaction is True


def test_config_env_var_path(monkeypatch, tmp_path):
    path = tmp_path / "other.yaml"
    path.write_text("oracle_model: gpt-4o\n")
    monkeypatch.setenv("COSIGNER_CONFIG", str(path))
    assert CosignerConfig.load().oracle_model == "gpt-4o"


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("private_key: 0xabc\n")
    with pytest.raises(ValueError, match="private_key"):
        CosignerConfig.load(str(path))


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)) == {}


def test_get_secret_prefers_file(monkeypatch, tmp_path):
    secret = tmp_path / "key"
    secret.write_text("from-file\n")
    monkeypatch.setenv("TEST_SECRET_FILE", str(secret))
    monkeypatch.setenv("TEST_SECRET", "from-env")
    assert get_secret("TEST_SECRET") == "from-file"


def test_get_secret_env(monkeypatch):
    monkeypatch.delenv("TEST_SECRET_FILE", raising=False)
    monkeypatch.setenv("TEST_SECRET", "from-env")
    assert get_secret("TEST_SECRET") == "from-env"


def test_get_secret_missing(monkeypatch):
    monkeypatch.delenv("TEST_SECRET_FILE", raising=False)
    monkeypatch.delenv("TEST_SECRET", raising=False)
    with pytest.raises(RuntimeError, match="TEST_SECRET"):
        get_secret("TEST_SECRET")
