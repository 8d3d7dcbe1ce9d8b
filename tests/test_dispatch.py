"""Tests for request dispatch and error handling."""

import json

import httpx
import pytest

from jira_rest.client.dispatch import Download, JiraResponse, RequestDispatcher, RequestOptions
from jira_rest.errors import (
    HttpError,
    JiraAuthenticationError,
    JiraNotFoundError,
    JiraPermissionError,
    JiraRateLimitError,
    JiraValidationError,
    ResponseDecodeError,
    TransportError,
)
from jira_rest.utils.auth import BasicCredential, BearerCredential, NoCredential

URL = "https://jira.example.com/rest/api/2/myself"


@pytest.fixture
def dispatcher(http):
    return RequestDispatcher(http, BearerCredential(token="pat"), httpx.Timeout(5))


async def test_json_body_is_decoded(stub, dispatcher):
    stub.respond(200, json={"name": "bob"})
    assert await dispatcher.do_request(RequestOptions(URL)) == {"name": "bob"}


async def test_empty_body_is_empty_dict(stub, dispatcher):
    stub.respond(204)
    assert await dispatcher.do_request(RequestOptions(URL, "DELETE")) == {}


async def test_non_json_body_is_text(stub, dispatcher):
    stub.respond(200, text="pong", headers={"content-type": "text/plain"})
    assert await dispatcher.do_request(RequestOptions(URL)) == "pong"


async def test_binary_body_is_raw_bytes_with_mime_type(stub, dispatcher):
    payload = b"\x89PNG\r\n\x1a\n\x00\x01"
    stub.respond(200, content=payload, headers={"content-type": "image/png"})

    result = await dispatcher.do_request(RequestOptions(URL), binary=True)
    assert result == Download(mime_type="image/png", content=payload)


async def test_binary_json_content_is_not_decoded(stub, dispatcher):
    stub.respond(200, json={"a": 1})
    result = await dispatcher.do_request(RequestOptions(URL), binary=True)
    assert result.mime_type == "application/json"
    assert json.loads(result.content) == {"a": 1}


async def test_plain_request_returns_envelope(stub, dispatcher):
    stub.respond(201, json={"id": "10000"}, headers={"X-Request-Id": "abc"})

    response = await dispatcher.do_plain_request(RequestOptions(URL, "POST", body={"a": 1}))
    assert isinstance(response, JiraResponse)
    assert response.status_code == 201
    assert response.headers["x-request-id"] == "abc"
    assert response.body == {"id": "10000"}


async def test_json_body_and_headers(stub, dispatcher):
    await dispatcher.do_request(RequestOptions(URL, "POST", body={"fields": {"summary": "x"}}))

    request = stub.last
    assert request.method == "POST"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"fields": {"summary": "x"}}


async def test_string_body_is_sent_as_json_string(stub, dispatcher):
    await dispatcher.do_request(RequestOptions(URL, "POST", body="bob"))
    assert stub.last.content == b'"bob"'


async def test_extra_headers_are_merged(stub, dispatcher):
    await dispatcher.do_request(RequestOptions(URL, headers={"X-Atlassian-Token": "no-check"}))
    assert stub.last.headers["X-Atlassian-Token"] == "no-check"
    assert stub.last.headers["Accept"] == "application/json"


async def test_params_are_added_to_url(stub, dispatcher):
    await dispatcher.do_request(RequestOptions(URL, params={"expand": "groups"}))
    assert stub.last.url.params["expand"] == "groups"


async def test_exactly_one_authorization_header(stub, dispatcher):
    await dispatcher.do_request(RequestOptions(URL))
    assert stub.last.headers.get_list("Authorization") == ["Bearer pat"]


async def test_basic_credential(stub, http):
    dispatcher = RequestDispatcher(http, BasicCredential(username="bob", password="pw"))
    await dispatcher.do_request(RequestOptions(URL))
    assert stub.last.headers["Authorization"].startswith("Basic ")


async def test_no_credential_sends_no_authorization(stub, http):
    dispatcher = RequestDispatcher(http, NoCredential())
    await dispatcher.do_request(RequestOptions(URL))
    assert "Authorization" not in stub.last.headers


async def test_no_credential_overrides_client_auth(stub):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(stub), auth=("someone", "secret")
    ) as http:
        await RequestDispatcher(http, NoCredential()).do_request(RequestOptions(URL))
    assert "Authorization" not in stub.last.headers


@pytest.mark.parametrize(
    "status, error_cls",
    [
        (400, JiraValidationError),
        (401, JiraAuthenticationError),
        (403, JiraPermissionError),
        (404, JiraNotFoundError),
        (409, HttpError),
        (429, JiraRateLimitError),
        (500, HttpError),
        (503, HttpError),
    ],
)
async def test_non_2xx_raises_http_error_without_retry(stub, dispatcher, status, error_cls):
    stub.respond(status, json={"errorMessages": ["Nope"], "errors": {}})

    with pytest.raises(error_cls) as excinfo:
        await dispatcher.do_request(RequestOptions(URL))

    assert isinstance(excinfo.value, HttpError)
    assert excinfo.value.status_code == status
    assert excinfo.value.response_data == {"errorMessages": ["Nope"], "errors": {}}
    assert "Nope" in str(excinfo.value)
    assert len(stub.requests) == 1


async def test_field_errors_in_message(stub, dispatcher):
    stub.respond(400, json={"errorMessages": [], "errors": {"summary": "Field is required"}})

    with pytest.raises(JiraValidationError, match="summary: Field is required"):
        await dispatcher.do_request(RequestOptions(URL, "POST", body={}))


async def test_non_json_error_body(stub, dispatcher):
    stub.respond(502, text="Bad Gateway", headers={"content-type": "text/html"})

    with pytest.raises(HttpError) as excinfo:
        await dispatcher.do_request(RequestOptions(URL))
    assert excinfo.value.status_code == 502
    assert excinfo.value.response_data == "Bad Gateway"


async def test_invalid_json_in_success_body_raises_decode_error(stub, dispatcher):
    stub.respond(200, content=b"<html>oops", headers={"content-type": "application/json"})

    with pytest.raises(ResponseDecodeError) as excinfo:
        await dispatcher.do_request(RequestOptions(URL))

    assert isinstance(excinfo.value, HttpError)
    assert excinfo.value.status_code == 200
    assert excinfo.value.response_data == "<html>oops"
    assert isinstance(excinfo.value.__cause__, ValueError)


async def test_invalid_json_in_plain_request_raises_decode_error(stub, dispatcher):
    stub.respond(201, content=b"not json", headers={"content-type": "application/json"})

    with pytest.raises(ResponseDecodeError):
        await dispatcher.do_plain_request(RequestOptions(URL, "POST", body={}))


async def test_invalid_json_is_ignored_for_binary_requests(stub, dispatcher):
    stub.respond(200, content=b"<html>oops", headers={"content-type": "application/json"})

    result = await dispatcher.do_request(RequestOptions(URL), binary=True)
    assert result.content == b"<html>oops"


async def test_plain_request_raises_on_error(stub, dispatcher):
    stub.respond(404, json={"errorMessages": ["Issue Does Not Exist"]})

    with pytest.raises(JiraNotFoundError):
        await dispatcher.do_plain_request(RequestOptions(URL))


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.ConnectTimeout("timed out"),
        httpx.DecodingError("Malformed gzip body"),
        httpx.TooManyRedirects("Exceeded maximum allowed redirects."),
        httpx.RemoteProtocolError("Server disconnected"),
    ],
)
async def test_transport_failure_raises_transport_error_without_retry(stub, dispatcher, error):
    stub.fail(error)

    with pytest.raises(TransportError) as excinfo:
        await dispatcher.do_request(RequestOptions(URL))

    assert excinfo.value.__cause__ is error
    assert excinfo.value.url == URL
    assert len(stub.requests) == 1
