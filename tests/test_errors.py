from __future__ import annotations

from trackersync.errors import (
    ConfigError,
    GitHubAPIError,
    TrackerAPIError,
    TrelloAPIError,
    UnknownDecisionError,
    UnsupportedFieldError,
    classify_error,
    redact,
)
from trackersync.models import IssueField


def test_unsupported_field_message_and_hierarchy():
    exc = UnsupportedFieldError('GitHub', IssueField.ID)
    assert str(exc) == 'Update of ID field is not supported by GitHub'
    assert isinstance(exc, ConfigError)
    assert exc.field is IssueField.ID


def test_classify_config():
    info = classify_error(ConfigError('Missing repo name'))
    assert info.category == 'config'
    assert info.transient is False


def test_classify_unknown_decision():
    assert classify_error(UnknownDecisionError('merge')).category == 'internal'


def test_classify_transient_api_status():
    info = classify_error(GitHubAPIError('GET /x failed with 503', status=503))
    assert info.category == 'api.transient'
    assert info.transient is True
    assert info.details == {'status': 503}


def test_classify_rate_limit_wording():
    info = classify_error(TrackerAPIError('API rate limit exceeded', status=403))
    assert info.category == 'api.transient'


def test_classify_plain_api_error():
    info = classify_error(TrelloAPIError('PUT /1/cards/x failed with 401', status=401))
    assert info.category == 'api'
    assert info.transient is False


def test_classify_network():
    info = classify_error(RuntimeError('Connection reset by peer'))
    assert info.category == 'network'
    assert info.transient is True


def test_classify_generic():
    info = classify_error(ValueError('Some other problem'))
    assert info.category == 'generic'


def test_redact_tokens():
    sample = (
        'Token ghp_ABCDEFGHIJKLMNOPQRSTUVWX plus github_pat_1234567890abcdefghijkl '
        'and https://api.trello.com/1/cards?key=abc123&token=def456'
    )
    out = redact(sample)
    assert 'ghp_' not in out
    assert 'github_pat_' not in out
    assert 'abc123' not in out and 'def456' not in out
    assert 'key=<redacted>' in out


def test_classify_redacts_message():
    info = classify_error(TrelloAPIError('GET https://x/1/boards?key=SECRET1&token=SECRET2 failed'))
    assert 'SECRET' not in info.message
