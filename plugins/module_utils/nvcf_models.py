#!/usr/bin/python
"""
Typed NVCF API objects and conversions between module options,
request payloads and the ``cloud_function`` result.
"""

import json
import typing as t
from dataclasses import dataclass, field
from enum import Enum

from .nvcf_errors import ValidationError

DEFAULT_FUNCTION_TYPE = "DEFAULT"
DEFAULT_API_BODY_FORMAT = "CUSTOM"


class FunctionStatus(str, Enum):
    """Deployment status reported by NVCF."""

    DEPLOYING = "DEPLOYING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class EnvironmentVariable:
    key: str
    value: str

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "EnvironmentVariable":
        return cls(key=data.get("key", ""), value=data.get("value", ""))

    def to_api(self) -> dict[str, t.Any]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class Artifact:
    """A model or resource attached to a function version."""

    name: str
    version: str
    uri: str

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "Artifact":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            uri=data.get("uri", ""),
        )

    def to_api(self) -> dict[str, t.Any]:
        return {"name": self.name, "version": self.version, "uri": self.uri}


@dataclass(frozen=True)
class HealthCheck:
    protocol: str = ""
    uri: str = ""
    port: int = 0
    timeout: str = ""
    expected_status_code: int = 0

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "HealthCheck":
        return cls(
            protocol=data.get("protocol", ""),
            uri=data.get("uri", ""),
            port=int(data.get("port") or 0),
            timeout=data.get("timeout", ""),
            expected_status_code=int(data.get("expectedStatusCode") or 0),
        )

    def to_api(self) -> dict[str, t.Any]:
        payload: dict[str, t.Any] = {
            "protocol": self.protocol,
            "uri": self.uri,
            "port": self.port,
            "timeout": self.timeout,
            "expectedStatusCode": self.expected_status_code,
        }
        # omit zero values, the API fills its own defaults
        return {k: v for k, v in payload.items() if v}

    def to_state(self) -> dict[str, t.Any]:
        return {
            "protocol": self.protocol,
            "uri": self.uri,
            "port": self.port,
            "timeout": self.timeout,
            "expected_status_code": self.expected_status_code,
        }


@dataclass(frozen=True)
class AuthorizedParty:
    nca_id: str
    client_id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "AuthorizedParty":
        return cls(nca_id=data.get("ncaId", ""), client_id=data.get("clientId") or None)

    def to_api(self) -> dict[str, t.Any]:
        payload = {"ncaId": self.nca_id}
        if self.client_id:
            payload["clientId"] = self.client_id
        return payload


@dataclass
class DeploymentSpecification:
    gpu: str
    instance_type: str
    min_instances: int
    max_instances: int
    max_request_concurrency: int
    backend: str = ""
    configuration: t.Any = None

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "DeploymentSpecification":
        return cls(
            gpu=data.get("gpu", ""),
            instance_type=data.get("instanceType", ""),
            min_instances=int(data.get("minInstances") or 0),
            max_instances=int(data.get("maxInstances") or 0),
            max_request_concurrency=int(data.get("maxRequestConcurrency") or 0),
            backend=data.get("backend", ""),
            configuration=data.get("configuration"),
        )

    def to_api(self) -> dict[str, t.Any]:
        return {
            "gpu": self.gpu,
            "backend": self.backend,
            "instanceType": self.instance_type,
            "maxInstances": self.max_instances,
            "minInstances": self.min_instances,
            "maxRequestConcurrency": self.max_request_concurrency,
            "configuration": self.configuration,
        }

    def to_state(self) -> dict[str, t.Any]:
        return {
            "backend": self.backend,
            "instance_type": self.instance_type,
            "gpu_type": self.gpu,
            "min_instances": self.min_instances,
            "max_instances": self.max_instances,
            "max_request_concurrency": self.max_request_concurrency,
            "configuration": dump_configuration(self.configuration),
        }


@dataclass
class Deployment:
    function_id: str = ""
    function_version_id: str = ""
    nca_id: str = ""
    function_status: str = ""
    health_info: t.Any = None
    deployment_specifications: list[DeploymentSpecification] = field(
        default_factory=list
    )

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "Deployment":
        return cls(
            function_id=data.get("functionId", ""),
            function_version_id=data.get("functionVersionId", ""),
            nca_id=data.get("ncaId", ""),
            function_status=data.get("functionStatus", ""),
            health_info=data.get("healthInfo"),
            deployment_specifications=[
                DeploymentSpecification.from_api(spec)
                for spec in data.get("deploymentSpecifications") or []
            ],
        )


@dataclass
class FunctionInfo:
    id: str
    version_id: str
    nca_id: str = ""
    name: str = ""
    status: str = ""
    function_type: str = ""
    inference_url: str = ""
    inference_port: int = 0
    health_uri: str = ""
    health: HealthCheck | None = None
    api_body_format: str = ""
    description: str = ""
    container_image: str = ""
    container_args: str = ""
    container_environment: list[EnvironmentVariable] = field(default_factory=list)
    helm_chart: str = ""
    helm_chart_service_name: str = ""
    models: list[Artifact] = field(default_factory=list)
    resources: list[Artifact] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, t.Any]) -> "FunctionInfo":
        health = data.get("health")
        return cls(
            id=data.get("id", ""),
            version_id=data.get("versionId", ""),
            nca_id=data.get("ncaId", ""),
            name=data.get("name", ""),
            status=data.get("status", ""),
            function_type=data.get("functionType", ""),
            inference_url=data.get("inferenceUrl", ""),
            inference_port=int(data.get("inferencePort") or 0),
            health_uri=data.get("healthUri", ""),
            health=HealthCheck.from_api(health) if health else None,
            api_body_format=data.get("apiBodyFormat", ""),
            description=data.get("description", ""),
            container_image=data.get("containerImage", ""),
            container_args=data.get("containerArgs", ""),
            container_environment=[
                EnvironmentVariable.from_api(env)
                for env in data.get("containerEnvironment") or []
            ],
            helm_chart=data.get("helmChart", ""),
            helm_chart_service_name=data.get("helmChartServiceName", ""),
            models=[Artifact.from_api(m) for m in data.get("models") or []],
            resources=[Artifact.from_api(r) for r in data.get("resources") or []],
            tags=list(data.get("tags") or []),
        )


def parse_configuration(value: t.Any) -> t.Any:
    """Deployment configuration from a JSON string or a mapping."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError as e:
            raise ValidationError(
                f"Failed to parse deployment configuration: {e}"
            ) from e
    return value


def dump_configuration(value: t.Any) -> str | None:
    """Canonical JSON text for a configuration value."""
    if value is None:
        return None
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def parse_secret_value(name: str, value: t.Any) -> t.Any:
    """Structured secrets are sent as JSON nodes, anything else verbatim."""
    if not isinstance(value, str):
        return value
    if value.lstrip()[:1] not in ("{", "["):
        return value
    try:
        return json.loads(value)
    except ValueError as e:
        raise ValidationError(f"Secret '{name}' is not valid JSON: {e}") from e


def parse_import_id(import_id: str) -> tuple[str, str]:
    """Split a 'function_id,version_id' import identifier."""
    parts = import_id.split(",")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(
            "Expected import identifier with format: function_id,version_id. "
            f"Got: {import_id!r}"
        )
    return parts[0], parts[1]


def _artifacts(values: list[dict[str, t.Any]] | None) -> list[dict[str, t.Any]]:
    return [
        Artifact(name=v["name"], version=v["version"], uri=v["uri"]).to_api()
        for v in values or []
    ]


def build_function_request(params: dict[str, t.Any]) -> dict[str, t.Any]:
    """Build the function creation payload from module parameters."""
    container_image = params.get("container_image")
    helm_chart = params.get("helm_chart")

    if bool(container_image) == bool(helm_chart):
        raise ValidationError(
            "Exactly one of 'container_image' or 'helm_chart' must be provided"
        )
    if not helm_chart and params.get("helm_chart_service_name"):
        raise ValidationError("'helm_chart_service_name' requires 'helm_chart'")
    if not container_image and (
        params.get("container_args") or params.get("container_environment")
    ):
        raise ValidationError(
            "'container_args' and 'container_environment' require 'container_image'"
        )

    request: dict[str, t.Any] = {
        "name": params["function_name"],
        "inferenceUrl": params["inference_url"],
        "inferencePort": params.get("inference_port") or 0,
        "apiBodyFormat": params.get("api_body_format") or DEFAULT_API_BODY_FORMAT,
        "functionType": params.get("function_type") or DEFAULT_FUNCTION_TYPE,
    }

    if container_image:
        request["containerImage"] = container_image
        if params.get("container_args"):
            request["containerArgs"] = params["container_args"]
        if params.get("container_environment"):
            request["containerEnvironment"] = [
                EnvironmentVariable(key=e["key"], value=e["value"]).to_api()
                for e in params["container_environment"]
            ]
    else:
        request["helmChart"] = helm_chart
        if params.get("helm_chart_service_name"):
            request["helmChartServiceName"] = params["helm_chart_service_name"]

    if params.get("health_uri"):
        request["healthUri"] = params["health_uri"]
    if params.get("health"):
        health = params["health"]
        request["health"] = HealthCheck(
            protocol=health.get("protocol") or "",
            uri=health.get("uri") or "",
            port=health.get("port") or 0,
            timeout=health.get("timeout") or "",
            expected_status_code=health.get("expected_status_code") or 0,
        ).to_api()
    if params.get("description"):
        request["description"] = params["description"]
    if params.get("tags"):
        request["tags"] = list(params["tags"])
    if params.get("models"):
        request["models"] = _artifacts(params["models"])
    if params.get("resources"):
        request["resources"] = _artifacts(params["resources"])

    secrets = []
    for secret in params.get("secrets") or []:
        # empty values are never sent
        if secret.get("value") in (None, ""):
            continue
        secrets.append(
            {
                "name": secret["name"],
                "value": parse_secret_value(secret["name"], secret["value"]),
            }
        )
    if secrets:
        request["secrets"] = secrets

    return request


def build_deployment_specifications(
    params: dict[str, t.Any],
) -> list[DeploymentSpecification]:
    """Deployment specifications from module parameters, in input order."""
    specifications = []
    for spec in params.get("deployment_specifications") or []:
        specifications.append(
            DeploymentSpecification(
                gpu=spec["gpu_type"],
                instance_type=spec["instance_type"],
                min_instances=spec["min_instances"],
                max_instances=spec["max_instances"],
                max_request_concurrency=spec["max_request_concurrency"],
                backend=spec.get("backend") or "",
                configuration=parse_configuration(spec.get("configuration")),
            )
        )
    return specifications


def build_authorized_parties(params: dict[str, t.Any]) -> list[AuthorizedParty]:
    """Authorized parties from module parameters, duplicates removed."""
    seen: dict[str, AuthorizedParty] = {}
    for party in params.get("authorized_parties") or []:
        seen.setdefault(party["nca_id"], AuthorizedParty(nca_id=party["nca_id"]))
    return list(seen.values())


def build_state(
    desired: dict[str, t.Any],
    function: FunctionInfo,
    deployment: Deployment | None,
    parties: list[AuthorizedParty],
) -> dict[str, t.Any]:
    """Merge API responses into the ``cloud_function`` result.

    Values reported by the API win over the desired ones; secrets are
    never returned by the API and are left out.
    """
    state: dict[str, t.Any] = {
        "id": function.id,
        "version_id": function.version_id,
        "function_id": desired.get("function_id"),
        "nca_id": function.nca_id or desired.get("nca_id"),
        "function_name": function.name or desired.get("function_name"),
        "function_type": function.function_type
        or desired.get("function_type")
        or DEFAULT_FUNCTION_TYPE,
        "inference_url": function.inference_url or desired.get("inference_url"),
        "inference_port": function.inference_port,
        "health_uri": function.health_uri or desired.get("health_uri"),
        "health": function.health.to_state()
        if function.health
        else desired.get("health"),
        "api_body_format": function.api_body_format
        or desired.get("api_body_format")
        or DEFAULT_API_BODY_FORMAT,
        "description": function.description or desired.get("description"),
        "container_image": function.container_image or desired.get("container_image"),
        "container_args": function.container_args or desired.get("container_args"),
        "helm_chart": function.helm_chart or desired.get("helm_chart"),
        "helm_chart_service_name": function.helm_chart_service_name
        or desired.get("helm_chart_service_name"),
        "status": function.status,
        "keep_failed_resource": bool(desired.get("keep_failed_resource")),
    }

    state["container_environment"] = [
        {"key": env.key, "value": env.value}
        for env in sorted(function.container_environment, key=lambda e: e.key)
    ]
    state["models"] = [
        {"name": a.name, "version": a.version, "uri": a.uri}
        for a in sorted(function.models, key=lambda a: (a.name, a.version, a.uri))
    ]
    state["resources"] = [
        {"name": a.name, "version": a.version, "uri": a.uri}
        for a in sorted(function.resources, key=lambda a: (a.name, a.version, a.uri))
    ]
    state["tags"] = sorted(set(function.tags))

    if deployment is not None and deployment.deployment_specifications:
        state["deployment_specifications"] = [
            spec.to_state() for spec in deployment.deployment_specifications
        ]
    else:
        state["deployment_specifications"] = []

    state["authorized_parties"] = [
        {"nca_id": nca_id} for nca_id in sorted({p.nca_id for p in parties})
    ]
    return state
