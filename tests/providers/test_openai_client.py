"""
Tests for the OpenAI text completion client.
"""
import json
from unittest.mock import patch

import httpx
import openai
import pytest

from r_agent.config import ClientConfig
from r_agent.errors import ApiError, DecodeError, MissingCredentialError, TransportError
from r_agent.providers import CompletionBackend, CompletionClient


class TestConstruction:
    """Credential handling when the client is built."""

    def test_missing_credential_fails_before_sdk_client(self):
        with patch("r_agent.providers.openai.AsyncOpenAI") as sdk_cls:
            with pytest.raises(MissingCredentialError) as exc_info:
                CompletionClient(ClientConfig())

        sdk_cls.assert_not_called()
        assert exc_info.value.env_var == "OPENAI_API_KEY"

    def test_from_env_without_key(self, clean_env):
        with pytest.raises(MissingCredentialError):
            CompletionClient.from_env()

    def test_from_env_with_key(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-from-env-123456")
        with patch("r_agent.providers.openai.AsyncOpenAI") as sdk_cls:
            client = CompletionClient.from_env(model="my-model")

        kwargs = sdk_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-from-env-123456"
        assert kwargs["max_retries"] == 0
        assert client.model_name == "my-model"

    def test_repr_hides_credential(self, client_config, sdk_client):
        client = CompletionClient(client_config, client=sdk_client())

        assert "sk-test" not in repr(client)
        assert "sk-test" not in repr(client.config)

    def test_satisfies_backend_protocol(self, client_config, sdk_client):
        assert isinstance(CompletionClient(client_config, client=sdk_client()), CompletionBackend)


class TestComplete:
    """Successful completion calls."""

    async def test_returns_text_verbatim(self, client_config, sdk_client, raw_response, completion_body):
        sdk = sdk_client(returns=raw_response(completion_body("  Paris\n")))
        client = CompletionClient(client_config, client=sdk)

        assert await client.complete("Capital of France?") == "  Paris\n"

    async def test_request_parameters(self, client_config, sdk_client):
        sdk = sdk_client()
        client = CompletionClient(client_config, client=sdk)

        await client.complete("Say hi", stop={"\nObservation:", "\nQuestion:"})

        params = sdk.completions.with_raw_response.create.await_args.kwargs
        assert params == {
            "model": "gpt-3.5-turbo-instruct",
            "prompt": "Say hi",
            "temperature": 0.0,
            "max_tokens": 256,
            "stop": ["\nObservation:", "\nQuestion:"],
        }

    async def test_no_stop_omitted(self, client_config, sdk_client):
        sdk = sdk_client()

        await CompletionClient(client_config, client=sdk).complete("p")

        assert "stop" not in sdk.completions.with_raw_response.create.await_args.kwargs

    async def test_full_response_keeps_every_field(self, client_config, sdk_client, raw_response, completion_body):
        body = completion_body(" ok", system_fingerprint="fp_1")
        client = CompletionClient(client_config, client=sdk_client(returns=raw_response(body)))

        response = await client.complete_response("p")

        assert response.id == "cmpl-123"
        assert response.choices[0].finish_reason == "stop"
        assert response.to_dict() == body

    async def test_context_manager_closes(self, client_config, sdk_client):
        sdk = sdk_client()

        async with CompletionClient(client_config, client=sdk) as client:
            await client.complete("p")

        sdk.close.assert_awaited_once()

    def test_complete_sync(self, client_config, sdk_client):
        client = CompletionClient(client_config, client=sdk_client())

        assert client.complete_sync("p") == " Hello"


class TestErrorMapping:
    """SDK and body failures map to the completion error taxonomy."""

    async def test_timeout(self, client_config, sdk_client, http_request):
        sdk = sdk_client(raises=openai.APITimeoutError(request=http_request))

        with pytest.raises(TransportError) as exc_info:
            await CompletionClient(client_config, client=sdk).complete("p")

        assert exc_info.value.timeout
        assert exc_info.value.retryable

    async def test_connection_error(self, client_config, sdk_client, http_request):
        sdk = sdk_client(raises=openai.APIConnectionError(request=http_request))

        with pytest.raises(TransportError) as exc_info:
            await CompletionClient(client_config, client=sdk).complete("p")

        assert not exc_info.value.timeout

    @pytest.mark.parametrize("status,retryable", [(401, False), (400, False), (429, True), (503, True)])
    async def test_status_error(self, client_config, sdk_client, http_request, status, retryable):
        response = httpx.Response(
            status,
            request=http_request,
            headers={"x-request-id": "req_42"},
            json={"error": {"message": "nope"}},
        )
        body = {"error": {"message": "nope"}}
        sdk = sdk_client(raises=openai.APIStatusError("nope", response=response, body=body))

        with pytest.raises(ApiError) as exc_info:
            await CompletionClient(client_config, client=sdk).complete("p")

        error = exc_info.value
        assert error.status == status
        assert error.body == body
        assert error.retryable is retryable
        assert error.context.request_id == "req_42"

    async def test_body_not_json(self, client_config, sdk_client, raw_response):
        sdk = sdk_client(returns=raw_response("<html>bad gateway</html>"))

        with pytest.raises(DecodeError) as exc_info:
            await CompletionClient(client_config, client=sdk).complete("p")

        assert exc_info.value.body == "<html>bad gateway</html>"
        assert not exc_info.value.retryable

    async def test_body_missing_choices(self, client_config, sdk_client, raw_response, completion_body):
        body = completion_body()
        del body["choices"]
        sdk = sdk_client(returns=raw_response(body))

        with pytest.raises(DecodeError) as exc_info:
            await CompletionClient(client_config, client=sdk).complete("p")

        assert "choices" in exc_info.value.message
        assert exc_info.value.body is not None

    async def test_body_empty_choices(self, client_config, sdk_client, raw_response, completion_body):
        sdk = sdk_client(returns=raw_response(completion_body(choices=[])))

        with pytest.raises(DecodeError):
            await CompletionClient(client_config, client=sdk).complete("p")


class TestRealSdk:
    """The real AsyncOpenAI client over an in-memory HTTP transport."""

    def _client(self, client_config, handler):
        sdk = openai.AsyncOpenAI(
            api_key=client_config.api_key,
            base_url=client_config.base_url,
            max_retries=0,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        return CompletionClient(client_config, client=sdk)

    async def test_success(self, client_config, completion_body):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=completion_body(" Paris"))

        async with self._client(client_config, handler) as client:
            text = await client.complete("Capital of France?", stop=["\nObservation:"])

        assert text == " Paris"
        assert seen[0].url.path.endswith("/completions")
        payload = json.loads(seen[0].content)
        assert payload["prompt"] == "Capital of France?"
        assert payload["stop"] == ["\nObservation:"]
        assert seen[0].headers["authorization"] == f"Bearer {client_config.api_key}"

    async def test_server_error(self, client_config):
        def handler(request):
            return httpx.Response(500, json={"error": {"message": "overloaded"}})

        async with self._client(client_config, handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.complete("p")

        assert exc_info.value.status == 500
        assert exc_info.value.retryable

    async def test_connection_refused(self, client_config):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with self._client(client_config, handler) as client:
            with pytest.raises(TransportError):
                await client.complete("p")

    async def test_body_not_json(self, client_config):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"})

        async with self._client(client_config, handler) as client:
            with pytest.raises(DecodeError) as exc_info:
                await client.complete("p")

        assert exc_info.value.body == "<html>gateway</html>"
