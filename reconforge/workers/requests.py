"""
reconforge/workers/requests.py

Purpose:
    One request model per worker kind. A worker validates every incoming
    message against its model before anything is staged or executed.

Semantics:
    - Each model names its required field and the message returned when that
      field is missing (kept identical to what parents already match on,
      e.g. "No hosts received").
    - Type errors in any field become a RequestValidationError that lists
      the offending fields.
    - Unknown fields are ignored.
"""

from __future__ import annotations

import re
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reconforge.base.exceptions import RequestValidationError
from reconforge.ipc.envelope import WorkerRequest

RESOURCE_TYPE_RE = re.compile(r"^aws_[a-z0-9_]+$")


class ToolRequest(WorkerRequest):
    kind: ClassVar[str] = ""
    required_field: ClassVar[str] = ""
    missing_message: ClassVar[str] = "Invalid message received"


class RetainableRequest(ToolRequest):
    # None = use the tool's configured default
    retain_output: Optional[bool] = None


class HttpxRequest(ToolRequest):
    kind: ClassVar[str] = "httpx"
    required_field: ClassVar[str] = "hosts"
    missing_message: ClassVar[str] = "No hosts received"

    hosts: List[str]


class NmapRequest(ToolRequest):
    kind: ClassVar[str] = "nmap"
    required_field: ClassVar[str] = "host"
    missing_message: ClassVar[str] = "Invalid message received by NmapWorker"

    host: str

    @field_validator("host")
    @classmethod
    def _no_option_injection(cls, value: str) -> str:
        value = value.strip()
        if not value or value.startswith("-") or any(c.isspace() for c in value):
            raise ValueError("host must be a single hostname or address")
        return value


class KatanaHeaders(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    authorization: Optional[str] = Field(default=None, alias="Authorization")
    cookie: Optional[str] = Field(default=None, alias="Cookie")


class KatanaRequest(RetainableRequest):
    kind: ClassVar[str] = "katana"
    required_field: ClassVar[str] = "webappUrls"

    webapp_urls: List[str]
    crawler_config: Optional[Dict[str, Any]] = None
    form_config: Optional[Dict[str, Any]] = None
    field_config: Optional[Dict[str, Any]] = None
    headers: KatanaHeaders = Field(default_factory=KatanaHeaders)


class GowitnessRequest(RetainableRequest):
    kind: ClassVar[str] = "gowitness"
    required_field: ClassVar[str] = "assetUrls"
    missing_message: ClassVar[str] = "No asset URLs received"

    asset_urls: List[str]


class CloudSource(BaseModel):
    """A cloud source as stored by the platform; credentials ride along as extra fields."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uuid: Optional[str] = None
    cloud_type: str = Field(alias="cloudType")

    @property
    def credentials(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CloudlistRequest(ToolRequest):
    kind: ClassVar[str] = "cloudlist"
    required_field: ClassVar[str] = "source"
    missing_message: ClassVar[str] = "Invalid message received by CloudlistWorker"

    source: CloudSource


class AwsCredentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_key: str = Field(alias="accessKey", min_length=1)
    secret_key: str = Field(alias="secretKey", min_length=1)

    def __repr__(self) -> str:
        return "AwsCredentials(access_key='***', secret_key='***')"

    __str__ = __repr__


class SteampipeRequest(ToolRequest):
    kind: ClassVar[str] = "steampipe"
    required_field: ClassVar[str] = "credentials"
    missing_message: ClassVar[str] = "No AWS credentials received"

    credentials: AwsCredentials
    resource_type: str = "aws_ec2_instance"

    @field_validator("resource_type")
    @classmethod
    def _check_resource_type(cls, value: str) -> str:
        if not RESOURCE_TYPE_RE.match(value):
            raise ValueError("resourceType must look like aws_<table_name>")
        return value


class UroRequest(RetainableRequest):
    kind: ClassVar[str] = "uro"
    required_field: ClassVar[str] = "urls"

    urls: List[str]


REQUEST_MODELS: Dict[str, Type[ToolRequest]] = {
    model.kind: model
    for model in (
        HttpxRequest,
        NmapRequest,
        KatanaRequest,
        GowitnessRequest,
        CloudlistRequest,
        SteampipeRequest,
        UroRequest,
    )
}


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0)


def _summarise(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ())) or "request"
        problems.append(f"{where}: {err.get('msg')}")
    return "Invalid request: " + "; ".join(problems)


def parse_request(model: Type[ToolRequest], payload: Dict[str, Any]) -> ToolRequest:
    """
    Validate a raw message into ``model``.

    Raises:
        RequestValidationError: required field missing/empty (with the
            model's fixed message) or any field of the wrong shape.
    """
    if not isinstance(payload, dict) or _is_missing(payload.get(model.required_field)):
        raise RequestValidationError(model.missing_message)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        # the chained ValidationError would echo credential values
        raise RequestValidationError(_summarise(exc)) from None
