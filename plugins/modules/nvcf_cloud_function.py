#!/usr/bin/python

DOCUMENTATION = r"""
---
module: nvcf_cloud_function
short_description: Manage NVIDIA Cloud Functions
description:
    - Create, update, replace, or delete an NVIDIA Cloud Function version
    - Deploy the version and wait until the deployment is active
    - Manage the accounts authorized to invoke the version
    - Changing a container, Helm chart, endpoint or deployment hardware
      setting replaces the version; tags, authorized parties and instance
      counts are changed in place
version_added: "1.0.0"
author:
    - Ansible NVCF Module Contributors
options:
    state:
        description: Desired state of the function version
        required: false
        type: str
        choices: ['present', 'absent']
        default: 'present'
    id:
        description:
            - ID of an existing function to manage.
            - Used together with C(version_id).
        required: false
        type: str
    version_id:
        description: ID of an existing function version to manage
        required: false
        type: str
    import_id:
        description:
            - Existing version to adopt, in the form C(function_id,version_id).
            - Mutually exclusive with C(id).
        required: false
        type: str
    function_id:
        description:
            - Parent function ID. When set, a new version is created under
              this function instead of a new function.
        required: false
        type: str
    function_name:
        description: Name of the function
        required: false
        type: str
    helm_chart:
        description: Helm chart URL. Mutually exclusive with C(container_image).
        required: false
        type: str
    helm_chart_service_name:
        description: Service name of the Helm chart that receives inference requests
        required: false
        type: str
    container_image:
        description: Container image URL. Mutually exclusive with C(helm_chart).
        required: false
        type: str
    container_args:
        description: Arguments passed to the container
        required: false
        type: str
    container_environment:
        description: Environment variables of the container
        required: false
        type: list
        elements: dict
        suboptions:
            key:
                description: Variable name
                required: true
                type: str
            value:
                description: Variable value
                required: true
                type: str
    inference_url:
        description: Path of the inference endpoint inside the container
        required: false
        type: str
    inference_port:
        description: Port of the inference endpoint
        required: false
        type: int
    health_uri:
        description: Health check path
        required: false
        type: str
    health:
        description: Health check definition
        required: false
        type: dict
        suboptions:
            protocol:
                description: Health check protocol
                type: str
                choices: ['HTTP', 'gRPC']
            uri:
                description: Health check path
                type: str
            port:
                description: Health check port
                type: int
            timeout:
                description: Health check timeout as an ISO 8601 duration, e.g. C(PT10S)
                type: str
            expected_status_code:
                description: HTTP status code of a healthy response
                type: int
    api_body_format:
        description: Format of the invocation request body
        required: false
        type: str
        choices: ['PREDICT_V2', 'CUSTOM']
        default: 'CUSTOM'
    function_type:
        description: Type of the function
        required: false
        type: str
        choices: ['DEFAULT', 'STREAMING']
        default: 'DEFAULT'
    description:
        description: Description of the function version
        required: false
        type: str
    tags:
        description:
            - Tags of the function version.
            - When omitted, the tags are not managed.
        required: false
        type: list
        elements: str
    models:
        description: Models attached to the function version
        required: false
        type: list
        elements: dict
        suboptions:
            name:
                description: Model name
                required: true
                type: str
            version:
                description: Model version
                required: true
                type: str
            uri:
                description: Model URI
                required: true
                type: str
    resources:
        description: Resources attached to the function version
        required: false
        type: list
        elements: dict
        suboptions:
            name:
                description: Resource name
                required: true
                type: str
            version:
                description: Resource version
                required: true
                type: str
            uri:
                description: Resource URI
                required: true
                type: str
    secrets:
        description:
            - Secrets made available to the function.
            - Secret values are never read back, so changing them has no effect
              on an existing version.
        required: false
        type: list
        elements: dict
        suboptions:
            name:
                description: Secret name
                required: true
                type: str
            value:
                description:
                    - Secret value. A string that holds a JSON object or array
                      is sent as structured JSON.
                required: true
                type: raw
    deployment_specifications:
        description:
            - Deployment of the function version.
            - An empty or omitted list leaves the version undeployed.
        required: false
        type: list
        elements: dict
        suboptions:
            gpu_type:
                description: GPU name
                required: true
                type: str
            instance_type:
                description: Instance type
                required: true
                type: str
            backend:
                description: Backend or cluster group
                type: str
            min_instances:
                description: Minimum number of instances
                required: true
                type: int
            max_instances:
                description: Maximum number of instances
                required: true
                type: int
            max_request_concurrency:
                description: Maximum concurrent requests per instance
                required: true
                type: int
            configuration:
                description: Helm values overrides, as a mapping or a JSON string
                type: raw
    authorized_parties:
        description:
            - NCA IDs of the accounts allowed to invoke the version.
            - An empty or omitted list removes every additional account.
        required: false
        type: list
        elements: dict
        suboptions:
            nca_id:
                description: NCA ID of the account
                required: true
                type: str
    keep_failed_resource:
        description: Keep the function version when its deployment fails
        required: false
        type: bool
        default: false
    timeouts:
        description: Seconds to wait for a deployment to become active
        required: false
        type: dict
        suboptions:
            create:
                description: Timeout when creating a version
                type: int
                default: 3600
            update:
                description: Timeout when updating a deployment
                type: int
                default: 3600
extends_documentation_fragment:
    - nvcf_auth
"""

EXAMPLES = r"""
- name: Deploy a container function
  nvcf_cloud_function:
    function_name: "echo"
    container_image: "nvcr.io/my-org/echo:1.0"
    inference_url: "/echo"
    inference_port: 8000
    health:
      protocol: "HTTP"
      uri: "/health"
      port: 8000
      timeout: "PT10S"
      expected_status_code: 200
    deployment_specifications:
      - gpu_type: "L40"
        instance_type: "gl40_1.br20_2xlarge"
        min_instances: 1
        max_instances: 2
        max_request_concurrency: 1
    tags:
      - "demo"
    state: present
  register: echo

- name: Deploy a Helm chart with configuration overrides
  nvcf_cloud_function:
    function_name: "inference"
    helm_chart: "https://helm.ngc.nvidia.com/my-org/charts/inference-1.0.0.tgz"
    helm_chart_service_name: "entry"
    inference_url: "/v2/models/infer"
    inference_port: 8001
    deployment_specifications:
      - gpu_type: "H100"
        instance_type: "DGX-CLOUD.GPU.H100_1x"
        backend: "dgxc-forge"
        min_instances: 1
        max_instances: 1
        max_request_concurrency: 2
        configuration:
          image:
            tag: "1.0"
    timeouts:
      create: 5400
    state: present

- name: Allow another account to invoke the version
  nvcf_cloud_function:
    id: "{{ echo.cloud_function.id }}"
    version_id: "{{ echo.cloud_function.version_id }}"
    function_name: "echo"
    container_image: "nvcr.io/my-org/echo:1.0"
    inference_url: "/echo"
    inference_port: 8000
    authorized_parties:
      - nca_id: "partner-nca-id"
    state: present

- name: Delete a function version
  nvcf_cloud_function:
    import_id: "{{ echo.cloud_function.id }},{{ echo.cloud_function.version_id }}"
    state: absent
"""

RETURN = r"""
action:
    description: What was done, one of create, update, replace, delete or none
    type: str
    returned: always
replace_fields:
    description: Options whose change forces a new version
    type: list
    elements: str
    returned: when state=present
update_fields:
    description: Options changed in place
    type: list
    elements: str
    returned: when state=present
cloud_function:
    description: Observed state of the function version
    type: dict
    returned: when the version exists
    contains:
        id:
            description: Function ID
            type: str
        version_id:
            description: Function version ID
            type: str
        nca_id:
            description: NCA ID of the owning account
            type: str
        status:
            description: Function version status
            type: str
        deployment_specifications:
            description: Deployment of the version, empty when undeployed
            type: list
        authorized_parties:
            description: Accounts authorized to invoke the version
            type: list
changed:
    description: Whether the function was changed
    type: bool
    returned: always
"""

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_client import NGCClient
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_common import (
    DEFAULT_TIMEOUT_SECONDS,
    nvcf_argument_spec,
)
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_errors import (
    NVCFError,
    OperationError,
)
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_reconciler import (
    CloudFunctionReconciler,
)

ARTIFACT_OPTIONS = {
    "name": {"type": "str", "required": True},
    "version": {"type": "str", "required": True},
    "uri": {"type": "str", "required": True},
}


def build_argument_spec():
    argument_spec = nvcf_argument_spec()
    argument_spec.update(
        state={"type": "str", "choices": ["present", "absent"], "default": "present"},
        id={"type": "str"},
        version_id={"type": "str"},
        import_id={"type": "str"},
        function_id={"type": "str"},
        function_name={"type": "str"},
        helm_chart={"type": "str"},
        helm_chart_service_name={"type": "str"},
        container_image={"type": "str"},
        container_args={"type": "str"},
        container_environment={
            "type": "list",
            "elements": "dict",
            "options": {
                "key": {"type": "str", "required": True, "no_log": False},
                "value": {"type": "str", "required": True},
            },
        },
        inference_url={"type": "str"},
        inference_port={"type": "int"},
        health_uri={"type": "str"},
        health={
            "type": "dict",
            "options": {
                "protocol": {"type": "str", "choices": ["HTTP", "gRPC"]},
                "uri": {"type": "str"},
                "port": {"type": "int"},
                "timeout": {"type": "str"},
                "expected_status_code": {"type": "int"},
            },
        },
        api_body_format={
            "type": "str",
            "choices": ["PREDICT_V2", "CUSTOM"],
            "default": "CUSTOM",
        },
        function_type={
            "type": "str",
            "choices": ["DEFAULT", "STREAMING"],
            "default": "DEFAULT",
        },
        description={"type": "str"},
        tags={"type": "list", "elements": "str"},
        models={"type": "list", "elements": "dict", "options": ARTIFACT_OPTIONS},
        resources={"type": "list", "elements": "dict", "options": ARTIFACT_OPTIONS},
        secrets={
            "type": "list",
            "elements": "dict",
            "no_log": True,
            "options": {
                "name": {"type": "str", "required": True},
                "value": {"type": "raw", "required": True, "no_log": True},
            },
        },
        deployment_specifications={
            "type": "list",
            "elements": "dict",
            "options": {
                "gpu_type": {"type": "str", "required": True},
                "instance_type": {"type": "str", "required": True},
                "backend": {"type": "str"},
                "min_instances": {"type": "int", "required": True},
                "max_instances": {"type": "int", "required": True},
                "max_request_concurrency": {"type": "int", "required": True},
                "configuration": {"type": "raw"},
            },
        },
        authorized_parties={
            "type": "list",
            "elements": "dict",
            "options": {"nca_id": {"type": "str", "required": True}},
        },
        keep_failed_resource={"type": "bool", "default": False},
        timeouts={
            "type": "dict",
            "options": {
                "create": {"type": "int", "default": DEFAULT_TIMEOUT_SECONDS},
                "update": {"type": "int", "default": DEFAULT_TIMEOUT_SECONDS},
            },
        },
    )
    return argument_spec


def main():
    module = AnsibleModule(
        argument_spec=build_argument_spec(),
        mutually_exclusive=[
            ("container_image", "helm_chart"),
            ("import_id", "id"),
            ("import_id", "version_id"),
        ],
        required_together=[("id", "version_id")],
        required_if=[
            ("state", "present", ("function_name", "inference_url")),
            ("state", "absent", ("import_id", "version_id"), True),
        ],
        supports_check_mode=True,
    )

    client = NGCClient(module)
    reconciler = CloudFunctionReconciler(module, client.nvcf_client)

    try:
        result = reconciler.ensure(module.params, check_mode=module.check_mode)
    except OperationError as e:
        module.fail_json(msg=str(e), **e.to_result())
    except NVCFError as e:
        module.fail_json(msg=str(e))

    module.exit_json(**result)


if __name__ == "__main__":
    main()
