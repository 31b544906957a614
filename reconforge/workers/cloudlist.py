"""
reconforge/workers/cloudlist.py
Cloud asset inventory with cloudlist.

One-shot. The source record carries the provider credentials as camelCase
fields; cloudlist wants a YAML provider list with snake_case keys:

    - provider: aws
      id: 7d4c...
      aws_access_key: AKIA...
      aws_secret_key: ...
"""

import re
from typing import Any, Dict, Tuple

import yaml

from reconforge.base.exceptions import RequestValidationError
from reconforge.parsers.lines import parse_plain_lines
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import CloudlistRequest, CloudSource

# cloud type -> credential fields (all required unless listed in ANY_OF_CREDENTIALS)
CLOUD_CREDENTIALS: Dict[str, Tuple[str, ...]] = {
    "aws": ("awsAccessKey", "awsSecretKey"),
    "gcp": ("gcpServiceAccountKey",),
    "azure": ("clientId", "clientSecret", "tenantId", "subscriptionId"),
    "digitalocean": ("digitaloceanToken",),
    "scaleway": ("scalewayAccessKey", "scalewayAccessToken"),
    "arvancloud": ("apiKey",),
    "cloudflare": ("email", "apiKey"),
    "heroku": ("herokuApiToken",),
    "fastly": ("fastlyApiKey",),
    "linode": ("linodePersonalAccessToken",),
    "namecheap": ("namecheapApiKey", "namecheapUserName"),
    "alibaba": ("alibabaAccessKey", "alibabaAccessKeySecret", "alibabaRegionId"),
    "terraform": ("tfStateFile",),
    "consul": ("consulUrl",),
    "nomad": ("nomadUrl",),
    "hetzner": ("authToken",),
    "kubernetes": ("kubeconfigFile", "kubeconfigEncoded"),
    "dnssimple": ("dnssimpleApiToken",),
}

# Types satisfied by any one of their credential fields
ANY_OF_CREDENTIALS = {"kubernetes"}

_UPPER_RE = re.compile(r"([A-Z])")


def to_snake_case(name: str) -> str:
    """myKeyName -> my_key_name (acronyms are not special-cased)."""
    return _UPPER_RE.sub(lambda m: "_" + m.group(1).lower(), name)


def provider_config(source: CloudSource) -> list:
    """
    Build cloudlist's provider list for one source.

    Raises:
        RequestValidationError: unknown cloud type or missing credentials
    """
    fields = CLOUD_CREDENTIALS.get(source.cloud_type)
    if fields is None:
        raise RequestValidationError(f"Unsupported cloud type: {source.cloud_type}")

    supplied = source.credentials
    credentials = {name: supplied.get(name) for name in fields if supplied.get(name)}

    if source.cloud_type in ANY_OF_CREDENTIALS:
        missing = not credentials
    else:
        missing = len(credentials) != len(fields)
    if missing:
        raise RequestValidationError(f"Missing credentials for {source.cloud_type}")

    entry: Dict[str, Any] = {"provider": source.cloud_type, "id": source.uuid}
    entry.update({to_snake_case(name): value for name, value in credentials.items()})
    return [entry]


class CloudlistWorker(Worker):
    kind = "cloudlist"
    request_model = CloudlistRequest
    one_shot = True

    def process(self, request, staging, log) -> Dict[str, Any]:
        source = request.source
        log.info(f"Received source {source.uuid} ({source.cloud_type})")

        config = provider_config(source)
        text = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
        config_file = staging.write_secret("cloudlist-config", text, suffix=".yaml")

        result = self.execute(get_tool_command("cloudlist", config_file=config_file), log)
        if result.stderr:
            log.warning(f"cloudlist stderr: {result.stderr[:1000]}")

        assets = parse_plain_lines(result.stdout)
        log.info(f"Processed {len(assets)} assets for {source.uuid}")
        return {"results": assets, "sourceUuid": source.uuid}
