#!/usr/bin/python
"""
Lifecycle orchestration for NVIDIA Cloud Functions.

A cloud function as managed here is the aggregate of a function version,
its optional deployment and the accounts authorized to invoke it. The
reconciler turns desired module options into the ordered REST calls that
create, update or delete that aggregate, and merges the responses back
into a single ``cloud_function`` dictionary.
"""

import typing as t
from dataclasses import dataclass, field

from .nvcf_common import NVCFModuleBase, timeout_for
from .nvcf_errors import NotFoundError, NVCFError, OperationError
from .nvcf_models import (
    AuthorizedParty,
    FunctionInfo,
    build_authorized_parties,
    build_deployment_specifications,
    build_function_request,
    build_state,
    parse_import_id,
)
from .nvcf_waiter import DeploymentWaiter

REPLACE = "replace"
UPDATE = "update"
IGNORE = "ignore"

# How a change to each option is applied to an existing version
FIELD_POLICY: dict[str, str] = {
    "function_id": REPLACE,
    "function_name": REPLACE,
    "function_type": REPLACE,
    "helm_chart": REPLACE,
    "helm_chart_service_name": REPLACE,
    "container_image": REPLACE,
    "container_args": REPLACE,
    "container_environment": REPLACE,
    "inference_url": REPLACE,
    "inference_port": REPLACE,
    "health_uri": REPLACE,
    "health": REPLACE,
    "api_body_format": REPLACE,
    "description": REPLACE,
    "models": REPLACE,
    "resources": REPLACE,
    "tags": UPDATE,
    "authorized_parties": UPDATE,
    "deployment_specifications": UPDATE,
    "secrets": IGNORE,
    "keep_failed_resource": IGNORE,
    "timeouts": IGNORE,
}

DEPLOYMENT_SPECIFICATION_POLICY: dict[str, str] = {
    "backend": REPLACE,
    "instance_type": REPLACE,
    "gpu_type": REPLACE,
    "configuration": REPLACE,
    "min_instances": UPDATE,
    "max_instances": UPDATE,
    "max_request_concurrency": UPDATE,
}

_SET_KEYS: dict[str, tuple[str, ...]] = {
    "container_environment": ("key", "value"),
    "models": ("name", "version", "uri"),
    "resources": ("name", "version", "uri"),
    "authorized_parties": ("nca_id",),
}


@dataclass
class ReconcilePlan:
    """Outcome of comparing desired options with the observed version."""

    action: str
    replace_fields: list[str] = field(default_factory=list)
    update_fields: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.action != "none"


def _normalize(name: str, value: t.Any) -> t.Any:
    """Comparable form of an option value; sets become sorted tuples."""
    if name == "tags":
        return tuple(sorted(set(value or [])))
    if name in _SET_KEYS:
        keys = _SET_KEYS[name]
        return tuple(sorted({tuple(item.get(k) for k in keys) for item in value or []}))
    if name == "health" and value:
        return tuple(
            sorted((k, v) for k, v in value.items() if v not in (None, "", 0))
        )
    return value


def diff_deployment_specifications(
    desired: list[dict[str, t.Any]], observed: list[dict[str, t.Any]]
) -> str | None:
    """Policy triggered by a change of the deployment specification list."""
    if desired == observed:
        return None
    if not desired or not observed:
        # deploying or undeploying is an in-place change
        return UPDATE
    if len(desired) != len(observed):
        return REPLACE

    policy = None
    for wanted, current in zip(desired, observed):
        for key, key_policy in DEPLOYMENT_SPECIFICATION_POLICY.items():
            value = wanted.get(key)
            if value is None or value == "":
                continue
            if value != current.get(key):
                if key_policy == REPLACE:
                    return REPLACE
                policy = UPDATE
    return policy


class CloudFunctionReconciler(NVCFModuleBase):
    """Create, read, update and delete a cloud function aggregate."""

    def __init__(
        self,
        module: t.Any,
        client: t.Any,
        waiter: DeploymentWaiter | None = None,
    ) -> None:
        super().__init__(module)
        self.client = client
        self.waiter = waiter or DeploymentWaiter(module, client)

    # Planning

    def diff(
        self, desired: dict[str, t.Any], observed: dict[str, t.Any]
    ) -> tuple[list[str], list[str]]:
        """Names of the changed options, split into replace and update."""
        replace_fields: list[str] = []
        update_fields: list[str] = []

        for name, policy in FIELD_POLICY.items():
            if policy == IGNORE:
                continue

            if name == "deployment_specifications":
                wanted_specs = [
                    spec.to_state()
                    for spec in build_deployment_specifications(desired)
                ]
                change = diff_deployment_specifications(
                    wanted_specs, observed.get(name) or []
                )
                if change == REPLACE:
                    replace_fields.append(name)
                elif change == UPDATE:
                    update_fields.append(name)
                continue

            wanted = desired.get(name)
            if name == "authorized_parties":
                # an omitted list means no extra accounts
                wanted = wanted or []
            if wanted is None:
                continue

            current = observed.get("id") if name == "function_id" else observed.get(name)
            if _normalize(name, wanted) != _normalize(name, current):
                if policy == REPLACE:
                    replace_fields.append(name)
                else:
                    update_fields.append(name)

        return replace_fields, update_fields

    def plan(
        self, desired: dict[str, t.Any], observed: dict[str, t.Any] | None
    ) -> ReconcilePlan:
        """Decide between create, update, replace or nothing."""
        if observed is None:
            return ReconcilePlan("create")

        replace_fields, update_fields = self.diff(desired, observed)
        if replace_fields:
            action = "replace"
        elif update_fields:
            action = "update"
        else:
            action = "none"
        return ReconcilePlan(action, replace_fields, update_fields)

    # Authorized parties

    def sync_authorized_parties(
        self, function_id: str, version_id: str, parties: list[AuthorizedParty]
    ) -> list[AuthorizedParty]:
        """Make the authorized parties of a version match ``parties``.

        A non-empty list overwrites the remote list. An empty list clears
        the remote list, but only after checking that it is not empty.
        """
        if parties:
            try:
                return self.client.authorize_parties(function_id, version_id, parties)
            except NVCFError as e:
                raise OperationError(
                    "Failed to authorize additional accounts to invoke function", e
                ) from e

        try:
            current = self.client.get_authorization(function_id, version_id)
        except NVCFError as e:
            raise OperationError("Failed to list authorized parties", e) from e

        if current:
            try:
                self.client.unauthorize_all_parties(function_id, version_id)
            except NVCFError as e:
                raise OperationError(
                    "Failed to unauthorize additional accounts to invoke function", e
                ) from e
        return []

    # Lifecycle

    def create(self, desired: dict[str, t.Any], timeout: float) -> dict[str, t.Any]:
        """Create a function version, authorize invokers and deploy it."""
        request = build_function_request(desired)
        specifications = build_deployment_specifications(desired)
        parties = build_authorized_parties(desired)
        deadline = self.waiter.deadline_after(timeout)

        try:
            function = self.client.create_function(request, desired.get("function_id"))
        except NVCFError as e:
            raise OperationError("Failed to create Cloud Function", e) from e

        authorized = self.sync_authorized_parties(
            function.id, function.version_id, parties
        )

        if not specifications:
            return build_state(desired, function, None, authorized)

        try:
            deployment = self.client.create_deployment(
                function.id, function.version_id, specifications
            )
            self.waiter.wait(function.id, function.version_id, deadline)
        except NVCFError as e:
            error = OperationError("Failed to create Cloud Function Deployment", e)
            self._delete_failed_version(desired, function, error)
            raise error from e

        return build_state(desired, function, deployment, authorized)

    def _delete_failed_version(
        self, desired: dict[str, t.Any], function: FunctionInfo, error: OperationError
    ) -> None:
        self.warn(
            f"Failed to deploy Cloud Function version {function.id}/{function.version_id}"
        )
        if desired.get("keep_failed_resource"):
            self.warn(
                f"Keeping failed Cloud Function version "
                f"{function.id}/{function.version_id} for inspection"
            )
            return

        try:
            self.client.delete_function_version(function.id, function.version_id)
        except NVCFError as e:
            error.cleanup_error = e
            self.warn(f"Failed to delete failed Cloud Function deployment: {e}")
            return
        self.log(
            f"Deleted failed Cloud Function version {function.id}/{function.version_id}"
        )

    def read(
        self,
        function_id: str,
        version_id: str,
        desired: dict[str, t.Any] | None = None,
    ) -> dict[str, t.Any] | None:
        """Observed state of a version, or None when it no longer exists."""
        try:
            function = self.client.get_function_version(function_id, version_id)
        except NotFoundError:
            self.warn(
                f"Cloud Function version {function_id}/{version_id} no longer exists"
            )
            return None
        except NVCFError as e:
            raise OperationError("Failed to get Cloud Function version", e) from e

        try:
            deployment = self.client.read_deployment(function_id, version_id)
        except NVCFError as e:
            raise OperationError("Failed to read Cloud Function deployment", e) from e

        try:
            parties = self.client.get_authorization(function_id, version_id)
        except NVCFError as e:
            raise OperationError("Failed to get Cloud Function authorization", e) from e

        return build_state(desired or {}, function, deployment, parties)

    def update(
        self, desired: dict[str, t.Any], prior: dict[str, t.Any], timeout: float
    ) -> dict[str, t.Any]:
        """Apply the in-place changes: tags, invokers and deployment."""
        function_id = prior["id"]
        version_id = prior["version_id"]
        specifications = build_deployment_specifications(desired)
        parties = build_authorized_parties(desired)
        deadline = self.waiter.deadline_after(timeout)

        tags = desired.get("tags")
        if tags is not None and _normalize("tags", tags) != _normalize(
            "tags", prior.get("tags")
        ):
            try:
                self.client.update_function_tags(
                    function_id, version_id, sorted(set(tags))
                )
            except NVCFError as e:
                raise OperationError("Failed to update function tags", e) from e

        try:
            function = self.client.get_function_version(function_id, version_id)
        except NVCFError as e:
            raise OperationError("Failed to get Cloud Function", e) from e

        authorized = self.sync_authorized_parties(
            function.id, function.version_id, parties
        )

        if not specifications:
            if prior.get("deployment_specifications"):
                try:
                    self.client.delete_deployment(function_id, version_id)
                except NotFoundError:
                    self.debug(f"No deployment left for {function_id}/{version_id}")
                except NVCFError as e:
                    raise OperationError(
                        f"Failed to delete Cloud Function Deployment {version_id}", e
                    ) from e
            return build_state(desired, function, None, authorized)

        try:
            if prior.get("deployment_specifications"):
                deployment = self.client.update_deployment(
                    function_id, version_id, specifications
                )
            else:
                deployment = self.client.create_deployment(
                    function_id, version_id, specifications
                )
            self.waiter.wait(function_id, version_id, deadline)
        except NVCFError as e:
            # the version predates this run, so it is left in place
            raise OperationError("Failed to update Cloud Function Deployment", e) from e

        return build_state(desired, function, deployment, authorized)

    def delete(self, function_id: str, version_id: str) -> None:
        """Delete a version; its deployment goes with it."""
        try:
            self.client.delete_function_version(function_id, version_id)
        except NVCFError as e:
            raise OperationError(
                f"Failed to delete Cloud Function version {version_id}", e
            ) from e

    def describe(self, function_id: str, version_id: str) -> dict[str, t.Any]:
        """Read-only view of a version, used by the info module."""
        try:
            versions = self.client.list_function_versions(function_id)
        except NVCFError as e:
            raise OperationError("Failed to read Cloud Function versions", e) from e

        function = next(
            (
                f
                for f in versions
                if f.id == function_id and f.version_id == version_id
            ),
            None,
        )
        if function is None:
            raise OperationError(
                "Version ID Not Found Error",
                NotFoundError(f"Unable to find the target version ID {version_id}"),
            )

        try:
            deployment = self.client.read_deployment(function_id, version_id)
        except NVCFError as e:
            raise OperationError("Failed to read Cloud Function deployment", e) from e

        try:
            parties = self.client.get_authorization(function_id, version_id)
        except NVCFError as e:
            raise OperationError(
                "Failed to read Cloud Function authorized parties", e
            ) from e

        return build_state({"function_id": function_id}, function, deployment, parties)

    # Module driver

    @staticmethod
    def resolve_identity(params: dict[str, t.Any]) -> tuple[str | None, str | None]:
        """Function and version ID addressed by the module options."""
        if params.get("import_id"):
            return parse_import_id(params["import_id"])
        return params.get("id"), params.get("version_id")

    def ensure(
        self, params: dict[str, t.Any], check_mode: bool = False
    ) -> dict[str, t.Any]:
        """Bring the remote version to ``params['state']``."""
        state = params.get("state") or "present"

        create_timeout = update_timeout = 0
        if state == "present":
            # surface malformed input before any request is sent
            build_function_request(params)
            build_deployment_specifications(params)
            create_timeout = timeout_for(params, "create")
            update_timeout = timeout_for(params, "update")

        function_id, version_id = self.resolve_identity(params)
        observed = None
        if function_id and version_id:
            observed = self.read(function_id, version_id, params)

        if state == "absent":
            if observed is None:
                return {"changed": False, "action": "none", "cloud_function": None}
            if not check_mode:
                self.delete(observed["id"], observed["version_id"])
            return {"changed": True, "action": "delete", "cloud_function": observed}

        plan = self.plan(params, observed)
        result: dict[str, t.Any] = {
            "changed": plan.changed,
            "action": plan.action,
            "replace_fields": plan.replace_fields,
            "update_fields": plan.update_fields,
            "cloud_function": observed,
        }
        if not plan.changed or check_mode:
            return result

        if plan.action == "create":
            result["cloud_function"] = self.create(params, create_timeout)
        elif plan.action == "update":
            result["cloud_function"] = self.update(
                params, observed, update_timeout
            )
        else:
            self.delete(observed["id"], observed["version_id"])
            result["cloud_function"] = self.create(params, create_timeout)
        return result
