#!/usr/bin/python
"""
NVCF REST API client for Ansible modules.
"""

import typing as t

import requests  # type: ignore

from .nvcf_common import NVCFModuleBase
from .nvcf_errors import (
    AuthenticationError,
    NotFoundError,
    RemoteAPIError,
    TransportError,
)
from .nvcf_models import (
    AuthorizedParty,
    Deployment,
    DeploymentSpecification,
    FunctionInfo,
)

REQUEST_TIMEOUT_SECONDS = 30


def error_message(body: dict[str, t.Any]) -> str:
    """Pick the human readable message out of either NVCF error body shape."""
    request_status = body.get("requestStatus") or {}
    if request_status.get("statusDescription"):
        return request_status["statusDescription"]
    return body.get("detail") or ""


class NVCFAPI(NVCFModuleBase):
    """One method per NVCF endpoint, no business logic."""

    def __init__(
        self,
        module: t.Any,
        base_url: str,
        api_key: str,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(module)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def send_request(
        self,
        method: str,
        path: str,
        expected_status: t.Collection[int],
        data: t.Any = None,
    ) -> tuple[int, dict[str, t.Any]]:
        """Send a JSON request and return the status with the decoded body.

        Any status outside ``expected_status`` is raised as an error.
        """
        url = self._url(path)
        try:
            response = self.session.request(
                method,
                url,
                json=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(
                f"failed to send request to {url} with method {method}: {e}"
            ) from e

        self.debug(f"NVCF {method} {url} -> {response.status_code}")

        if response.status_code not in expected_status:
            # The unauthenticated response format differs from the others
            if response.status_code == 401:
                raise AuthenticationError()

            try:
                body = response.json()
            except ValueError as e:
                raise RemoteAPIError(
                    "failed to parse error response body. "
                    f"Response body: {response.text}",
                    http_status=response.status_code,
                ) from e
            if not isinstance(body, dict):
                body = {}

            request_id = (body.get("requestStatus") or {}).get("requestId")
            error_class = NotFoundError if response.status_code == 404 else RemoteAPIError
            raise error_class(
                error_message(body) or f"unexpected status {response.status_code}",
                http_status=response.status_code,
                request_id=request_id,
            )

        if not response.content:
            return response.status_code, {}
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteAPIError(
                f"failed to parse response body. Response body: {response.text}",
                http_status=response.status_code,
            ) from e
        return response.status_code, body if isinstance(body, dict) else {}

    # Function management

    def create_function(
        self, request: dict[str, t.Any], parent_function_id: str | None = None
    ) -> FunctionInfo:
        """Create a function, or a new version of ``parent_function_id``."""
        if parent_function_id:
            path = f"nvcf/functions/{parent_function_id}/versions"
        else:
            path = "nvcf/functions"
        _, body = self.send_request("POST", path, {200}, data=request)
        return FunctionInfo.from_api(body.get("function") or {})

    def list_function_versions(self, function_id: str) -> list[FunctionInfo]:
        """List every version of a function."""
        _, body = self.send_request(
            "GET", f"nvcf/functions/{function_id}/versions", {200}
        )
        return [FunctionInfo.from_api(f) for f in body.get("functions") or []]

    def get_function_version(self, function_id: str, version_id: str) -> FunctionInfo:
        """Fetch one version; raises NotFoundError when it no longer exists."""
        _, body = self.send_request(
            "GET", f"nvcf/functions/{function_id}/versions/{version_id}", {200}
        )
        return FunctionInfo.from_api(body.get("function") or {})

    def update_function_tags(
        self, function_id: str, version_id: str, tags: list[str]
    ) -> FunctionInfo:
        """Replace the tags of a version; an empty list clears them."""
        data: dict[str, t.Any] = {}
        if tags:
            data["tags"] = list(tags)
        _, body = self.send_request(
            "PUT",
            f"nvcf/metadata/functions/{function_id}/versions/{version_id}",
            {200},
            data=data,
        )
        return FunctionInfo.from_api(body.get("function") or {})

    def delete_function_version(self, function_id: str, version_id: str) -> None:
        """Delete a version together with its deployment."""
        self.send_request(
            "DELETE", f"nvcf/functions/{function_id}/versions/{version_id}", {204}
        )

    # Function deployment

    def _deployment_path(self, function_id: str, version_id: str) -> str:
        return f"nvcf/deployments/functions/{function_id}/versions/{version_id}"

    def create_deployment(
        self,
        function_id: str,
        version_id: str,
        specifications: list[DeploymentSpecification],
    ) -> Deployment:
        """Deploy a version with the given specifications."""
        _, body = self.send_request(
            "POST",
            self._deployment_path(function_id, version_id),
            {200},
            data={"deploymentSpecifications": [s.to_api() for s in specifications]},
        )
        return Deployment.from_api(body.get("deployment") or {})

    def update_deployment(
        self,
        function_id: str,
        version_id: str,
        specifications: list[DeploymentSpecification],
    ) -> Deployment:
        """Change the specifications of an existing deployment."""
        _, body = self.send_request(
            "PUT",
            self._deployment_path(function_id, version_id),
            {200},
            data={"deploymentSpecifications": [s.to_api() for s in specifications]},
        )
        return Deployment.from_api(body.get("deployment") or {})

    def read_deployment(self, function_id: str, version_id: str) -> Deployment | None:
        """Current deployment, or None when the version is not deployed."""
        status, body = self.send_request(
            "GET", self._deployment_path(function_id, version_id), {200, 404}
        )
        if status == 404:
            return None
        return Deployment.from_api(body.get("deployment") or {})

    def delete_deployment(self, function_id: str, version_id: str) -> None:
        """Undeploy a version; raises NotFoundError when it is not deployed."""
        self.send_request(
            "DELETE", self._deployment_path(function_id, version_id), {200}
        )

    # Function sharing

    def _authorization_path(self, function_id: str, version_id: str) -> str:
        return f"nvcf/authorizations/functions/{function_id}/versions/{version_id}"

    def authorize_parties(
        self, function_id: str, version_id: str, parties: list[AuthorizedParty]
    ) -> list[AuthorizedParty]:
        """Replace the authorized parties of a version with ``parties``."""
        _, body = self.send_request(
            "POST",
            self._authorization_path(function_id, version_id),
            {200},
            data={"authorizedParties": [p.to_api() for p in parties]},
        )
        return self._parties(body)

    def unauthorize_all_parties(self, function_id: str, version_id: str) -> None:
        """Remove every additional account from a version."""
        self.send_request(
            "DELETE", self._authorization_path(function_id, version_id), {200}
        )

    def get_authorization(
        self, function_id: str, version_id: str
    ) -> list[AuthorizedParty]:
        """Accounts currently authorized to invoke a version."""
        _, body = self.send_request(
            "GET", self._authorization_path(function_id, version_id), {200}
        )
        return self._parties(body)

    @staticmethod
    def _parties(body: dict[str, t.Any]) -> list[AuthorizedParty]:
        function = body.get("function") or {}
        return [
            AuthorizedParty.from_api(p) for p in function.get("authorizedParties") or []
        ]
