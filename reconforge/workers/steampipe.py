"""
reconforge/workers/steampipe.py
AWS resource export with steampipe_export_aws.

The exporter takes its connection config inline (``--config "<hcl>"``). The
HCL is still staged as an owner-only file so the same cleanup guarantees
apply, and it is removed as soon as the command returns. Its argv slot is
masked whenever the command line is logged.
"""

import json
from typing import Any, Dict

from reconforge.base.exceptions import OutputParseError
from reconforge.toolkit.registry import get_tool_command
from reconforge.workers.base import Worker
from reconforge.workers.requests import SteampipeRequest


def _hcl_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def render_connection_config(access_key: str, secret_key: str) -> str:
    return f"access_key = {_hcl_string(access_key)}\nsecret_key = {_hcl_string(secret_key)}"


def display_name(resource_type: str) -> str:
    """aws_ec2_instance -> Ec2 Instance"""
    return resource_type[len("aws_"):].replace("_", " ").title()


class SteampipeWorker(Worker):
    kind = "steampipe"
    request_model = SteampipeRequest

    def process(self, request, staging, log) -> Dict[str, Any]:
        creds = request.credentials
        config_file = staging.write_secret(
            "steampipe-config",
            render_connection_config(creds.access_key, creds.secret_key),
            suffix=".hcl",
        )
        argv = get_tool_command(
            "steampipe",
            config=config_file.read_text(encoding="utf-8"),
            resource_type=request.resource_type,
        )

        log.info(f"Exporting {display_name(request.resource_type)} resources")
        try:
            result = self.execute(argv, log, redact=[argv.index("--config") + 1])
        finally:
            config_file.unlink(missing_ok=True)
            log.debug("Removed connection config")

        data = self._parse(result.stdout)
        log.info(f"Exported {len(data)} {request.resource_type} resources")
        return {"data": data, "count": len(data), "resourceType": request.resource_type}

    def _parse(self, stdout: str):
        if not stdout.strip():
            return []
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise OutputParseError(
                f"steampipe returned invalid JSON: {exc.msg} (line {exc.lineno})",
                tool=self.kind,
                exit_code=0,
            ) from exc
        if not isinstance(data, list):
            raise OutputParseError(
                f"steampipe returned {type(data).__name__}, expected a list",
                tool=self.kind,
                exit_code=0,
            )
        return data
