#!/usr/bin/python

DOCUMENTATION = r"""
---
module: nvcf_cloud_function_info
short_description: Read an NVIDIA Cloud Function version
description:
    - Look up one version of an NVIDIA Cloud Function
    - Report its deployment and the accounts authorized to invoke it
version_added: "1.0.0"
author:
    - Ansible NVCF Module Contributors
options:
    function_id:
        description: ID of the function
        required: true
        type: str
    version_id:
        description: ID of the function version
        required: true
        type: str
extends_documentation_fragment:
    - nvcf_auth
"""

EXAMPLES = r"""
- name: Read a function version
  nvcf_cloud_function_info:
    function_id: "2b4c8d0e-1f3a-4b5c-9d7e-0a1b2c3d4e5f"
    version_id: "7f6e5d4c-3b2a-4190-8f7e-6d5c4b3a2f1e"
  register: info

- name: Show the deployment
  debug:
    var: info.cloud_function.deployment_specifications
"""

RETURN = r"""
cloud_function:
    description: Observed state of the function version
    type: dict
    returned: success
changed:
    description: Always false
    type: bool
    returned: always
"""

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_client import NGCClient
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_common import (
    nvcf_argument_spec,
)
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_errors import (
    NVCFError,
    OperationError,
)
from ansible_collections.ngc.nvcf.plugins.module_utils.nvcf_reconciler import (
    CloudFunctionReconciler,
)


def main():
    argument_spec = nvcf_argument_spec()
    argument_spec.update(
        function_id={"type": "str", "required": True},
        version_id={"type": "str", "required": True},
    )

    module = AnsibleModule(argument_spec=argument_spec, supports_check_mode=True)

    client = NGCClient(module)
    reconciler = CloudFunctionReconciler(module, client.nvcf_client)

    try:
        cloud_function = reconciler.describe(
            module.params["function_id"], module.params["version_id"]
        )
    except OperationError as e:
        module.fail_json(msg=str(e), **e.to_result())
    except NVCFError as e:
        module.fail_json(msg=str(e))

    module.exit_json(changed=False, cloud_function=cloud_function)


if __name__ == "__main__":
    main()
