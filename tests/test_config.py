import pytest

from bakeryops.config import EnvReader, _normalize_db_url, _resolve_environment, _resolve_ratelimit_uri


def test_env_reader_typed_getters_collect_warnings():
    reader = EnvReader({'POOL': '12', 'BAD_POOL': 'many', 'FLAG': 'yes', 'BAD_FLAG': 'maybe', 'EMPTY': '  '})

    assert reader.int('POOL') == 12
    assert reader.int('BAD_POOL', 5) == 5
    assert reader.bool('FLAG') is True
    assert reader.bool('BAD_FLAG', False) is False
    assert reader.str('EMPTY', 'fallback') == 'fallback'
    assert len(reader.warnings) == 2


def test_postgres_scheme_is_normalized():
    assert _normalize_db_url('postgres://u:p@db/bakery') == 'postgresql://u:p@db/bakery'
    assert _normalize_db_url('sqlite:///x.db') == 'sqlite:///x.db'
    assert _normalize_db_url(None) is None


def test_rate_limit_storage_prefers_explicit_uri():
    assert _resolve_ratelimit_uri(EnvReader({'RATELIMIT_STORAGE_URI': 'redis://a', 'REDIS_URL': 'redis://b'})) == 'redis://a'
    assert _resolve_ratelimit_uri(EnvReader({'REDIS_URL': 'redis://b'})) == 'redis://b'
    assert _resolve_ratelimit_uri(EnvReader({})) == 'memory://'


def test_environment_resolution():
    assert _resolve_environment(EnvReader({'FLASK_ENV': ' Production '})).name == 'production'
    assert _resolve_environment(EnvReader({})).name == 'development'
    with pytest.raises(RuntimeError):
        _resolve_environment(EnvReader({'FLASK_ENV': 'qa'}))


def test_app_config_override(app):
    assert app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///')
    assert app.config['BAKERY_TIMEZONE'] == 'America/Mexico_City'
    assert 'ENV_DIAGNOSTICS' in app.config
