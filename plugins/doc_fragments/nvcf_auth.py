#!/usr/bin/python

"""Documentation fragment for NGC connection options."""


class ModuleDocFragment:
    """Documentation fragment for NGC connection options."""

    DOCUMENTATION = r"""
options:
    ngc_api_key:
        description:
            - NGC personal API key used as the bearer token.
            - Can also be set via the C(NGC_API_KEY) environment variable.
        required: false
        type: str
    ngc_org:
        description:
            - NGC organization name that owns the functions.
            - Can also be set via the C(NGC_ORG) environment variable.
        required: false
        type: str
    ngc_team:
        description:
            - NGC team name. When set, requests are scoped to the team.
            - Can also be set via the C(NGC_TEAM) environment variable.
        required: false
        type: str
    ngc_endpoint:
        description:
            - NGC API endpoint.
            - Can also be set via the C(NGC_ENDPOINT) environment variable.
            - Defaults to C(https://api.ngc.nvidia.com).
        required: false
        type: str
notes:
    - An API key and an organization are required for all NVCF API operations.
    - Module options take precedence over environment variables.
seealso:
    - name: NVIDIA Cloud Functions Documentation
      description: Official NVCF documentation
      link: https://docs.nvidia.com/cloud-functions/
"""
