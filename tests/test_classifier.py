from unittest.mock import Mock

import pytest
import requests

from auction_extractor.classifier import (
    ClassificationClient,
    ClassificationError,
    MalformedResponse,
    RateLimited,
    RetryPolicy,
    ServiceOverloaded,
    parse_json_response,
)
from auction_extractor.config import ExtractorConfig


def _client(session, sleep=None, api_key="test-key"):
    return ClassificationClient(
        endpoint="https://llm.example.com/v1/chat/completions",
        model="test-model",
        api_key=api_key,
        session=session,
        retry_policy=RetryPolicy(sleep=sleep or Mock()),
    )


# ====================
# JSON replies
# ====================


def test_parse_json_response_plain():
    assert parse_json_response('{"model": "911"}') == {"model": "911"}


def test_parse_json_response_fenced_list():
    assert parse_json_response('Here you go:\n```json\n["PCCB"]\n```', list) == ["PCCB"]


def test_parse_json_response_wrong_type():
    with pytest.raises(MalformedResponse):
        parse_json_response('{"a": 1}', list)


def test_parse_json_response_empty():
    with pytest.raises(MalformedResponse):
        parse_json_response("   ")


# ====================
# Client
# ====================


def test_complete_returns_message_content(mock_response):
    session = Mock()
    session.post.return_value = mock_response(content='{"model": "911"}')
    client = _client(session)

    assert client.complete("system", "user") == '{"model": "911"}'
    payload = session.post.call_args.kwargs["json"]
    assert payload["model"] == "test-model"
    assert payload["messages"][1] == {"role": "user", "content": "user"}
    assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer test-key"


def test_rate_limit_is_not_retried(mock_response):
    session = Mock()
    session.post.return_value = mock_response(status_code=429, text="Too Many Requests")
    sleep = Mock()
    client = _client(session, sleep)

    with pytest.raises(RateLimited):
        client.complete("system", "user")
    assert session.post.call_count == 1
    sleep.assert_not_called()


def test_overload_is_retried_with_growing_delay(mock_response):
    session = Mock()
    session.post.side_effect = [
        mock_response(status_code=503, text="Service Unavailable"),
        mock_response(status_code=529, text="Overloaded"),
        mock_response(content="[]"),
    ]
    sleep = Mock()
    client = _client(session, sleep)

    assert client.complete("system", "user") == "[]"
    assert session.post.call_count == 3
    assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]


def test_overload_gives_up_after_max_attempts(mock_response):
    session = Mock()
    session.post.return_value = mock_response(status_code=500, text='{"error": "model overloaded"}')
    sleep = Mock()
    client = _client(session, sleep)

    with pytest.raises(ServiceOverloaded):
        client.complete("system", "user")
    assert session.post.call_count == 3
    assert sleep.call_count == 2


def test_other_server_errors_are_not_retried(mock_response):
    session = Mock()
    session.post.return_value = mock_response(status_code=500, text="Internal Server Error")
    client = _client(session)

    with pytest.raises(ClassificationError) as excinfo:
        client.complete("system", "user")
    assert not isinstance(excinfo.value, ServiceOverloaded)
    assert session.post.call_count == 1


def test_network_error_becomes_classification_error():
    session = Mock()
    session.post.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(ClassificationError):
        _client(session).complete("system", "user")


def test_unexpected_body_is_malformed(mock_response):
    session = Mock()
    session.post.return_value = mock_response(body={"unexpected": True})

    with pytest.raises(MalformedResponse):
        _client(session).complete("system", "user")


def test_unavailable_without_api_key():
    session = Mock()
    client = _client(session, api_key=None)

    assert not client.available
    with pytest.raises(ClassificationError):
        client.complete("system", "user")
    session.post.assert_not_called()


# ====================
# Retry policy and config
# ====================


def test_retry_policy_delays():
    policy = RetryPolicy(max_attempts=3, base_delay=2.0, sleep=Mock())
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]


def test_retry_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_from_config_reads_key_from_environment(monkeypatch):
    monkeypatch.setenv("TEST_CLASSIFIER_KEY", "secret")
    config = ExtractorConfig({"classifier_api_key_env": "TEST_CLASSIFIER_KEY", "retry_base_delay": 1.5})
    client = ClassificationClient.from_config(config, sleep=Mock())

    assert client.available
    assert client.api_key == "secret"
    assert client.retry_policy.delay_for(2) == 3.0


def test_from_config_without_key_is_unavailable(monkeypatch):
    monkeypatch.delenv("CLASSIFIER_API_KEY", raising=False)
    assert not ClassificationClient.from_config(ExtractorConfig()).available


def test_from_config_disabled(monkeypatch):
    monkeypatch.setenv("CLASSIFIER_API_KEY", "secret")
    config = ExtractorConfig({"classifier_enabled": False})
    assert not ClassificationClient.from_config(config).available
