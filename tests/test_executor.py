import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from coincheck.errors import ParseError, ResponseError, TransportError
from coincheck.executor import RequestExecutor, serialize_body
from coincheck.request_models import OrdersPostRequest
from coincheck.models import OrderType
from coincheck.responses import OrdersDeleteResponse
from coincheck.retry_policy import NonceRetryPolicy
from coincheck.signing import make_signature

URL = "https://coincheck.com/api/exchange/orders/12345"
NONCE_ERROR_BODY = '{"success": false, "error": "Nonce must be incremented"}'
OTHER_ERROR_BODY = '{"success": false, "error": "Something else"}'
SUCCESS_BODY = '{"success": true, "id": 12345}'


def _resp(text):
    resp = MagicMock()
    resp.status_code = 200
    resp.text = text
    return resp


@pytest.fixture
def executor(credentials, fixed_nonce_source):
    return RequestExecutor(credentials, nonce_source=fixed_nonce_source)


@patch("coincheck.executor.requests.Session.request")
def test_get_returns_decoded_value(mock_request, executor):
    mock_request.return_value = _resp(SUCCESS_BODY)

    res = executor.execute_get(URL, OrdersDeleteResponse)

    assert res.id == 12345
    assert mock_request.call_count == 1


@patch("coincheck.executor.requests.Session.request")
def test_get_sends_signed_headers_without_body(mock_request, executor, credentials, fixed_nonce):
    mock_request.return_value = _resp(SUCCESS_BODY)

    executor.execute_get(URL, OrdersDeleteResponse)

    args, kwargs = mock_request.call_args
    assert args == ("GET", URL)
    assert kwargs["data"] is None
    headers = kwargs["headers"]
    assert headers["ACCESS-KEY"] == credentials.access_key
    assert headers["ACCESS-NONCE"] == str(fixed_nonce)
    assert headers["ACCESS-SIGNATURE"] == make_signature(fixed_nonce, URL, "", credentials.secret_key)
    assert "Content-Type" not in headers


@patch("coincheck.executor.requests.Session.request")
def test_post_signs_exact_body_sent(mock_request, executor, credentials, fixed_nonce):
    mock_request.return_value = _resp(SUCCESS_BODY)
    body = {"pair": "btc_jpy", "order_type": "buy", "rate": "3000000", "amount": "0.01"}

    executor.execute_post(URL, body, OrdersDeleteResponse)

    args, kwargs = mock_request.call_args
    assert args[0] == "POST"
    sent = kwargs["data"].decode("utf-8")
    assert sent == json.dumps(body)
    headers = kwargs["headers"]
    assert headers["Content-Type"] == "application/json"
    assert headers["ACCESS-SIGNATURE"] == make_signature(fixed_nonce, URL, sent, credentials.secret_key)


@patch("coincheck.executor.requests.Session.request")
def test_delete_sends_no_body(mock_request, executor):
    mock_request.return_value = _resp(SUCCESS_BODY)

    executor.execute_delete(URL, OrdersDeleteResponse)

    args, kwargs = mock_request.call_args
    assert args == ("DELETE", URL)
    assert kwargs["data"] is None


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_nonce_error_retried_five_times_then_fails(mock_request, mock_sleep, executor):
    mock_request.return_value = _resp(NONCE_ERROR_BODY)

    with pytest.raises(ResponseError) as exc_info:
        executor.execute_get(URL, OrdersDeleteResponse)

    assert mock_request.call_count == 6
    assert mock_sleep.call_count == 5
    mock_sleep.assert_called_with(0.01)
    err = exc_info.value
    assert err.message == "Nonce must be incremented"
    assert err.url == URL
    assert err.request == ""


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_other_server_error_not_retried(mock_request, mock_sleep, executor):
    mock_request.return_value = _resp(OTHER_ERROR_BODY)

    with pytest.raises(ResponseError, match="Something else"):
        executor.execute_get(URL, OrdersDeleteResponse)

    assert mock_request.call_count == 1
    mock_sleep.assert_not_called()


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_recovers_after_nonce_errors(mock_request, mock_sleep, executor):
    mock_request.side_effect = [_resp(NONCE_ERROR_BODY)] * 3 + [_resp(SUCCESS_BODY)]

    res = executor.execute_get(URL, OrdersDeleteResponse)

    assert res.id == 12345
    assert mock_request.call_count == 4
    assert mock_sleep.call_count == 3


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_each_attempt_gets_fresh_nonce(mock_request, mock_sleep, credentials):
    nonces = iter([1000, 1001, 1002])
    source = MagicMock()
    source.next_nonce.side_effect = lambda: next(nonces)
    executor = RequestExecutor(credentials, nonce_source=source)
    mock_request.side_effect = [_resp(NONCE_ERROR_BODY), _resp(NONCE_ERROR_BODY), _resp(SUCCESS_BODY)]

    executor.execute_get(URL, OrdersDeleteResponse)

    sent_nonces = [c.kwargs["headers"]["ACCESS-NONCE"] for c in mock_request.call_args_list]
    assert sent_nonces == ["1000", "1001", "1002"]
    signatures = {c.kwargs["headers"]["ACCESS-SIGNATURE"] for c in mock_request.call_args_list}
    assert len(signatures) == 3


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_post_error_carries_request_body(mock_request, mock_sleep, executor):
    mock_request.return_value = _resp('{"success": false, "error": "Amount is too small"}')
    body = {"pair": "btc_jpy", "amount": "0.0001"}

    with pytest.raises(ResponseError) as exc_info:
        executor.execute_post(URL, body, OrdersDeleteResponse)

    assert exc_info.value.request == json.dumps(body)
    assert mock_request.call_count == 1


@patch("coincheck.executor.requests.Session.request")
def test_unparseable_response_raises_parse_error(mock_request, executor):
    mock_request.return_value = _resp("<html>502 Bad Gateway</html>")

    with pytest.raises(ParseError) as exc_info:
        executor.execute_get(URL, OrdersDeleteResponse)

    assert exc_info.value.raw_text == "<html>502 Bad Gateway</html>"
    assert mock_request.call_count == 1


@patch("coincheck.executor.requests.Session.request")
def test_transport_error_not_retried(mock_request, executor):
    mock_request.side_effect = requests.exceptions.ConnectionError("connection reset")

    with pytest.raises(TransportError):
        executor.execute_get(URL, OrdersDeleteResponse)

    assert mock_request.call_count == 1


@patch("coincheck.executor.requests.Session.request")
def test_timeout_is_terminal_transport_error(mock_request, executor):
    mock_request.side_effect = requests.exceptions.Timeout("read timed out")

    with pytest.raises(TransportError, match="timed out"):
        executor.execute_get(URL, OrdersDeleteResponse)

    assert mock_request.call_count == 1
    assert mock_request.call_args.kwargs["timeout"] == 10.0


@patch("coincheck.executor.time.sleep")
@patch("coincheck.executor.requests.Session.request")
def test_custom_policy_budget(mock_request, mock_sleep, credentials, fixed_nonce_source):
    executor = RequestExecutor(credentials, nonce_source=fixed_nonce_source, retry_policy=NonceRetryPolicy(max_retries=1))
    mock_request.return_value = _resp(NONCE_ERROR_BODY)

    with pytest.raises(ResponseError):
        executor.execute_get(URL, OrdersDeleteResponse)

    assert mock_request.call_count == 2


@patch("coincheck.executor.requests.Session.request")
def test_public_get_is_unsigned(mock_request, executor):
    mock_request.return_value = _resp(SUCCESS_BODY)

    executor.execute_public_get(URL, OrdersDeleteResponse)

    assert mock_request.call_args.kwargs["headers"] == {}


def test_serialize_body_pydantic_model_omits_unset():
    req = OrdersPostRequest(pair="btc_jpy", order_type=OrderType.MARKET_SELL)
    assert json.loads(serialize_body(req)) == {"pair": "btc_jpy", "order_type": "market_sell"}


def test_context_manager_closes_session(credentials):
    session = MagicMock()
    with RequestExecutor(credentials, session=session):
        pass
    session.close.assert_called_once()
