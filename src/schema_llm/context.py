"""Schema driven conversation state and request construction."""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from schema_llm import media
from schema_llm.config import ContextConfig
from schema_llm.errors import ExtractionError, PathResolutionError, ValidationError
from schema_llm.paths import parse_path, resolve_path
from schema_llm.schema import SchemaSource, load_schema

T = TypeVar("T")

UNKNOWN_ERROR = "Unknown error"
UNPARSABLE_ERROR = "Failed to parse error message"

_MISSING: Any = object()


class GeneralContext:
    """Conversation state for one provider, shaped by that provider's schema.

    The schema tree is loaded once and never mutated; the message structure,
    content types and request template are deep-copied every time they are
    filled in. Instances are not thread-safe: each thread (or task) should own
    its own context, see ``ContextFactory.get_thread_local_context``.
    """

    _logger = logging.getLogger(__name__)

    def __init__(self, schema: SchemaSource, config: ContextConfig | None = None) -> None:
        self._config = config or ContextConfig()
        self._schema = load_schema(schema)

        self._headers: dict[str, str] = {}
        self._messages: list[dict[str, Any]] = []
        self._parameters: dict[str, Any] = {}
        self._system_message: str | None = None
        self._model_name: str | None = None
        self._api_key = ""

        self._cache_schema_elements()
        self._apply_defaults()
        self._build_headers()

    # -- schema derived state -------------------------------------------------

    def _cache_schema_elements(self) -> None:
        schema = self._schema
        self._provider_name = str(schema["provider"].get("name", ""))
        self._endpoint = str(schema["api"]["endpoint"])
        self._valid_roles = frozenset(str(role) for role in schema.get("message_roles") or ())

        self._request_template: dict[str, Any] = copy.deepcopy(schema["request_template"])

        response_format = schema["response_format"]
        self._text_path = parse_path(response_format["success"]["text_path"])
        error_format = response_format.get("error") or {}
        self._error_path = parse_path(error_format.get("error_path"))

        message_format = schema["message_format"]
        self._message_structure: dict[str, Any] = copy.deepcopy(message_format["structure"])
        content_types = message_format["content_types"]
        self._text_content_format: dict[str, Any] | None = copy.deepcopy(content_types.get("text"))
        self._image_content_format: dict[str, Any] | None = copy.deepcopy(content_types.get("image"))

    def _apply_defaults(self) -> None:
        default_model = (self._schema.get("models") or {}).get("default")
        if default_model:
            self._model_name = str(default_model)

    def _build_headers(self) -> None:
        headers_def = self._schema.get("headers") or {}
        placeholder = (self._schema.get("authentication") or {}).get("key_placeholder")

        headers: dict[str, str] = {}
        for key, value in (headers_def.get("required") or {}).items():
            headers[key] = self._substitute_key(str(value), placeholder)

        for key, value in (headers_def.get("optional") or {}).items():
            if isinstance(value, str) and value:
                headers[key] = self._substitute_key(value, placeholder)

        self._headers = headers

    def _substitute_key(self, value: str, placeholder: str | None) -> str:
        if placeholder and placeholder in value:
            return value.replace(placeholder, self._api_key)
        return value

    # -- state mutation -------------------------------------------------------

    def set_model(self, model: str) -> GeneralContext:
        """Select the model; unknown names are rejected when the schema lists available models."""
        available = self.get_supported_models()
        if available and model not in available and self._config.enable_validation:
            raise ValidationError(f"Model '{model}' is not supported by this provider", field="model")
        self._model_name = model
        return self

    def set_system_message(self, text: str) -> GeneralContext:
        if not self.supports_system_messages() and self._config.enable_validation:
            raise ValidationError(
                f"Provider '{self._provider_name}' does not support system messages",
                field="system",
            )
        self._system_message = text
        return self

    def set_parameter(self, key: str, value: Any) -> GeneralContext:
        """Set a request parameter, checking it against the schema's ``parameters`` rules."""
        if value is None:
            raise ValidationError(f"Parameter '{key}' cannot be null", field=key)

        if self._config.enable_validation:
            self._validate_parameter(key, value)

        self._parameters[key] = copy.deepcopy(value)
        return self

    def set_parameters(self, params: Mapping[str, Any]) -> GeneralContext:
        for key, value in params.items():
            self.set_parameter(key, value)
        return self

    def set_api_key(self, api_key: str) -> GeneralContext:
        if not api_key:
            raise ValidationError("API key cannot be empty", field="api_key")
        self._api_key = api_key
        self._build_headers()
        return self

    def add_user_message(
        self,
        content: str,
        media_type: str | None = None,
        media_data: str | None = None,
    ) -> GeneralContext:
        return self.add_message("user", content, media_type, media_data)

    def add_assistant_message(self, content: str) -> GeneralContext:
        return self.add_message("assistant", content)

    def add_message(
        self,
        role: str,
        content: str,
        media_type: str | None = None,
        media_data: str | None = None,
    ) -> GeneralContext:
        """Append a message built from the schema's message structure.

        ``media_data`` may be base64 text, a base64 data URI or a path to an
        image file, which is read and encoded.
        """
        message = self._create_message(role, content, media_type, media_data)

        if self._config.enable_validation:
            self._validate_message(message)

        self._messages.append(message)
        return self

    def clear_user_messages(self) -> None:
        self._messages.clear()

    def clear_system_message(self) -> None:
        self._system_message = None

    def clear_parameters(self) -> None:
        self._parameters.clear()

    def reset(self) -> None:
        """Drop messages, system message, parameters and model; keep the API key."""
        self.clear_user_messages()
        self.clear_system_message()
        self.clear_parameters()
        self._model_name = None
        self._apply_defaults()

    # -- message construction -------------------------------------------------

    def _create_message(
        self,
        role: str,
        content: str,
        media_type: str | None,
        media_data: str | None,
    ) -> dict[str, Any]:
        message = copy.deepcopy(self._message_structure)
        message["role"] = role

        parts = [self._create_text_content(content)]
        if media_type is not None and media_data is not None:
            if not self.supports_multimodal() and self._config.enable_validation:
                raise ValidationError(
                    f"Provider '{self._provider_name}' does not support multimodal content",
                    field="content",
                )
            parts.append(self._create_image_content(media_type, media_data))

        message["content"] = parts
        return message

    def _create_text_content(self, text: str) -> dict[str, Any]:
        if self._text_content_format is None:
            raise ValidationError(
                f"Provider '{self._provider_name}' does not declare a text content type",
                field="content",
            )
        part = copy.deepcopy(self._text_content_format)
        part["text"] = text
        return part

    def _create_image_content(self, media_type: str, data: str) -> dict[str, Any]:
        if self._image_content_format is None:
            raise ValidationError(
                f"Provider '{self._provider_name}' does not declare an image content type",
                field="content",
            )

        encoded = data if media.is_base64(data) else media.encode_file(data)
        if encoded.startswith("data:"):
            encoded = encoded.split(";base64,", 1)[1]
        part = copy.deepcopy(self._image_content_format)

        if isinstance(part.get("source"), dict):
            part["source"]["media_type"] = media_type
            part["source"]["data"] = encoded
        elif isinstance(part.get("image_url"), dict):
            part["image_url"]["url"] = f"data:{media_type};base64,{encoded}"
        return part

    # -- request / response ---------------------------------------------------

    def build_request(self, streaming: bool = False) -> dict[str, Any]:
        """Instantiate the request template with the current state.

        Explicit parameters override template values; config defaults only fill
        ``max_tokens``/``temperature`` when the key is absent. An explicit ``stream``
        parameter always wins over ``streaming``. Null fields are pruned.
        """
        request = copy.deepcopy(self._request_template)
        messages = copy.deepcopy(self._messages)

        if self._model_name:
            request["model"] = self._model_name

        if self._system_message is not None and self.supports_system_messages():
            if "system" in self._valid_roles:
                messages.insert(0, {"role": "system", "content": self._system_message})
            else:
                request["system"] = self._system_message

        request["messages"] = messages

        for key, value in self._parameters.items():
            request[key] = copy.deepcopy(value)

        if self._config.default_max_tokens is not None and "max_tokens" not in request:
            request["max_tokens"] = self._config.default_max_tokens
        if self._config.default_temperature is not None and "temperature" not in request:
            request["temperature"] = self._config.default_temperature

        if "stream" not in self._parameters:
            request["stream"] = bool(streaming and self.supports_streaming())

        _remove_nulls(request)
        self._logger.debug(
            "Built %s request with %d message(s) for model %s",
            self._provider_name,
            len(messages),
            self._model_name,
        )
        return request

    def extract_text_response(self, response: Any) -> str:
        try:
            node = resolve_path(response, self._text_path)
        except PathResolutionError as exc:
            raise ExtractionError(f"Failed to extract text response: {exc}") from exc
        return _as_text(node)

    def extract_full_response(self, response: Any) -> Any:
        success = self._schema["response_format"]["success"]
        if "content_path" not in success:
            raise ExtractionError("Failed to extract full response: schema declares no content_path")

        try:
            return resolve_path(response, parse_path(success["content_path"]))
        except PathResolutionError as exc:
            raise ExtractionError(f"Failed to extract full response: {exc}") from exc

    def extract_error(self, response: Any) -> str:
        if not self._error_path:
            return UNKNOWN_ERROR
        try:
            return _as_text(resolve_path(response, self._error_path))
        except PathResolutionError:
            return UNPARSABLE_ERROR

    # -- validation -----------------------------------------------------------

    def is_valid_request(self) -> bool:
        return not self.get_validation_errors()

    def get_validation_errors(self) -> list[str]:
        """Problems that would make the built request unusable, regardless of config."""
        errors: list[str] = []

        if not self._model_name:
            errors.append("Model name is required")
        if not self._messages:
            errors.append("At least one message is required")

        message_validation = (self._schema.get("validation") or {}).get("message_validation") or {}
        required_role = message_validation.get("last_message_role")
        if required_role is not None and self._messages:
            if self._messages[-1].get("role") != required_role:
                errors.append(f"Last message must be from: {required_role}")

        return errors

    def _validate_message(self, message: dict[str, Any]) -> None:
        for required in ("role", "content"):
            if not message.get(required):
                raise ValidationError("Message must contain 'role' and 'content' fields", field=required)

        role = message["role"]
        if self._valid_roles and role not in self._valid_roles:
            raise ValidationError(f"Invalid message role: {role}", field="role")

    def _validate_parameter(self, key: str, value: Any) -> None:
        param_def = (self._schema.get("parameters") or {}).get(key)
        if not isinstance(param_def, dict):
            return

        if isinstance(value, str) and "max_length" in param_def:
            max_length = int(param_def["max_length"])
            if len(value) > max_length:
                raise ValidationError(
                    f"Parameter '{key}' exceeds maximum length of {max_length}", field=key
                )

        if "enum" in param_def:
            allowed = param_def["enum"]
            if not any(_json_equal(value, candidate) for candidate in allowed):
                raise ValidationError(
                    f"Parameter '{key}' has invalid value {value!r}; allowed: {allowed}", field=key
                )

        if "type" in param_def:
            expected = param_def["type"]
            if not _matches_type(value, expected):
                raise ValidationError(f"Parameter '{key}' must be of type {expected}", field=key)

        if _is_number(value):
            if "min" in param_def and value < float(param_def["min"]):
                raise ValidationError(f"Parameter '{key}' must be >= {param_def['min']}", field=key)
            if "max" in param_def and value > float(param_def["max"]):
                raise ValidationError(f"Parameter '{key}' must be <= {param_def['max']}", field=key)

    # -- accessors ------------------------------------------------------------

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def schema(self) -> dict[str, Any]:
        return copy.deepcopy(self._schema)

    @property
    def config(self) -> ContextConfig:
        return self._config

    @property
    def model_name(self) -> str | None:
        return self._model_name

    @property
    def system_message(self) -> str | None:
        return self._system_message

    def get_headers(self) -> dict[str, str]:
        return dict(self._headers)

    def get_messages(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._messages)

    def get_parameters(self) -> dict[str, Any]:
        return copy.deepcopy(self._parameters)

    def has_parameter(self, key: str) -> bool:
        return key in self._parameters

    def get_parameter(self, key: str) -> Any:
        if key not in self._parameters:
            raise ValidationError(f"Parameter '{key}' not found", field=key)
        return copy.deepcopy(self._parameters[key])

    def get_parameter_as(self, key: str, type_: type[T], default: Any = _MISSING) -> T:
        """Return a parameter converted to ``type_``, or ``default`` if it was never set."""
        if default is not _MISSING and key not in self._parameters:
            return default
        value = self.get_parameter(key)
        try:
            return TypeAdapter(type_).validate_python(value)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Parameter '{key}' cannot be converted to requested type: {exc}", field=key
            ) from exc

    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def get_supported_models(self) -> list[str]:
        available = (self._schema.get("models") or {}).get("available") or []
        return [str(model) for model in available]

    def supports_multimodal(self) -> bool:
        return _flag(self._schema, "multimodal", "supported")

    def supports_streaming(self) -> bool:
        return _flag(self._schema, "features", "streaming")

    def supports_system_messages(self) -> bool:
        return _flag(self._schema, "system_message", "supported")


def _flag(schema: Mapping[str, Any], section: str, name: str) -> bool:
    node = schema.get(section)
    return isinstance(node, Mapping) and node.get(name) is True


def _remove_nulls(node: Any) -> None:
    if isinstance(node, dict):
        for key in [k for k, v in node.items() if v is None]:
            del node[key]
        for value in node.values():
            _remove_nulls(value)
    elif isinstance(node, list):
        for item in node:
            _remove_nulls(item)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_equal(left: Any, right: Any) -> bool:
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(_json_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(_json_equal(a, b) for a, b in zip(left, right))
    # 1, 1.0 and True are distinct JSON values
    return type(left) is type(right) and left == right


def _matches_type(value: Any, expected: str) -> bool:
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected in ("float", "number"):
        return _is_number(value)
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "array":
        return isinstance(value, (list, tuple))
    if expected == "object":
        return isinstance(value, dict)
    return True


def _as_text(node: Any) -> str:
    if isinstance(node, str):
        return node
    if node is None:
        return ""
    return json.dumps(node)
