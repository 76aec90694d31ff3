import importlib.util
import os
import textwrap

import pytest

# Skip validation on import so tests can control it
os.environ['NORTH_NODE_CONFIG_SKIP_VALIDATION'] = 'true'

import node_config
from node_config import NodeConfig, NodeConfigError, cfg


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for name in ('NORTH_NODE_CONFIG', 'EPHE_PATH', 'PORT', 'CORS_ORIGINS'):
        monkeypatch.delenv(name, raising=False)
    NodeConfig.reset()
    yield
    NodeConfig.reset()


def _write(tmp_path, content, name="north_node_constants.yaml"):
    config_file = tmp_path / name
    config_file.write_text(textwrap.dedent(content))
    return config_file


def test_load_default_config_and_access_known_key():
    config = NodeConfig()
    assert config.get("ephemeris.house_system") == "P"
    assert config.get("timezone.locator") == "bands"
    assert cfg().timezone.use_zone_library is True
    config.validate_required_keys()


def test_singleton_and_dotted_default():
    assert NodeConfig() is NodeConfig()
    assert NodeConfig().get("no.such.key", "fallback") == "fallback"


def test_validate_required_keys_missing(monkeypatch, tmp_path):
    config_file = _write(tmp_path, """
        ephemeris:
          path: "./ephe"
          house_system: "P"
        server:
          port: 3000
        """)
    monkeypatch.setenv('NORTH_NODE_CONFIG', str(config_file))
    config = NodeConfig()
    with pytest.raises(NodeConfigError, match="ephemeris.node"):
        config.validate_required_keys()


def test_invalid_values_rejected(monkeypatch, tmp_path):
    config_file = _write(tmp_path, """
        ephemeris: {path: "", house_system: "PK", node: "true"}
        timezone: {locator: "bands", use_zone_library: true}
        server: {port: 3000}
        cors: {allowed_origins: []}
        """)
    monkeypatch.setenv('NORTH_NODE_CONFIG', str(config_file))
    with pytest.raises(NodeConfigError, match="house_system"):
        NodeConfig().validate_required_keys()


def test_invalid_yaml_raises_error(monkeypatch, tmp_path):
    config_file = _write(tmp_path, "ephemeris: [unclosed_list", name="bad.yaml")
    monkeypatch.setenv('NORTH_NODE_CONFIG', str(config_file))
    with pytest.raises(NodeConfigError):
        NodeConfig()


def test_missing_explicit_file_raises(monkeypatch, tmp_path):
    monkeypatch.setenv('NORTH_NODE_CONFIG', str(tmp_path / "absent.yaml"))
    with pytest.raises(NodeConfigError):
        NodeConfig()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv('EPHE_PATH', '/srv/ephe')
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('CORS_ORIGINS', 'https://a.example, https://b.example')
    settings = cfg()
    assert settings.ephemeris.path == '/srv/ephe'
    assert settings.server.port == 8080
    assert settings.cors.allowed_origins == ('https://a.example', 'https://b.example')


def test_bad_port_override(monkeypatch):
    monkeypatch.setenv('PORT', 'eighty')
    with pytest.raises(NodeConfigError):
        NodeConfig()


def test_installed_constants_file_used_when_module_copy_absent(monkeypatch, tmp_path):
    installed = _write(tmp_path, """
        ephemeris: {path: "/opt/ephe", house_system: "K", node: "mean"}
        timezone: {locator: "bands", use_zone_library: true}
        server: {port: 4000}
        cors: {allowed_origins: ["https://installed.example"]}
        """)
    monkeypatch.setattr(node_config, 'MODULE_CONFIG_PATH', tmp_path / "absent.yaml")
    monkeypatch.setattr(node_config, 'INSTALLED_CONFIG_PATH', installed)
    config = NodeConfig()
    assert config.config_file == str(installed)
    assert config.get("ephemeris.house_system") == "K"
    assert cfg().cors.allowed_origins == ("https://installed.example",)


def test_builtin_defaults_keep_cors_allowlist(monkeypatch, tmp_path):
    monkeypatch.setattr(node_config, 'MODULE_CONFIG_PATH', tmp_path / "absent.yaml")
    monkeypatch.setattr(node_config, 'INSTALLED_CONFIG_PATH', tmp_path / "also_absent.yaml")
    settings = cfg()
    assert settings.server.port == 3000
    assert "http://astro-sand-box.local" in settings.cors.allowed_origins
    NodeConfig().validate_required_keys()


def test_invalid_config_fails_at_import(monkeypatch, tmp_path):
    config_file = _write(tmp_path, """
        ephemeris: {house_system: "P"}
        """)
    monkeypatch.setenv('NORTH_NODE_CONFIG', str(config_file))
    monkeypatch.setenv('NORTH_NODE_CONFIG_SKIP_VALIDATION', 'false')

    # Fresh copy of the module so the shared singleton stays untouched
    spec = importlib.util.spec_from_file_location('node_config_startup', node_config.__file__)
    module = importlib.util.module_from_spec(spec)
    with pytest.raises(Exception) as excinfo:
        spec.loader.exec_module(module)
    assert type(excinfo.value).__name__ == 'NodeConfigError'
    assert 'ephemeris.path' in str(excinfo.value)
