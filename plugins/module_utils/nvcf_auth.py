#!/usr/bin/python
"""
Credential resolution for NVCF Ansible modules.
"""

import os
import typing as t

from .nvcf_common import DEFAULT_NGC_ENDPOINT, NVCFModuleBase


class NGCAuth(NVCFModuleBase):
    """Resolve NGC connection settings from module options and environment."""

    ENV_VARS: dict[str, str] = {
        "ngc_api_key": "NGC_API_KEY",
        "ngc_org": "NGC_ORG",
        "ngc_team": "NGC_TEAM",
        "ngc_endpoint": "NGC_ENDPOINT",
    }

    def __init__(self, module: t.Any) -> None:
        super().__init__(module)
        # Module options take precedence over environment variables
        self.api_key: str | None = self._lookup("ngc_api_key")
        self.org: str | None = self._lookup("ngc_org")
        self.team: str | None = self._lookup("ngc_team")
        self.endpoint: str = self._lookup("ngc_endpoint") or DEFAULT_NGC_ENDPOINT

    def _lookup(self, option: str) -> str | None:
        value = self.module.params.get(option)
        if value:
            return value
        return os.environ.get(self.ENV_VARS[option]) or None

    def validate(self) -> bool:
        """Fail the module when mandatory settings are missing."""
        errors = []
        if not self.api_key:
            errors.append(
                "Missing NGC_API_KEY Configuration: the NGC personal key was not "
                "found in the NGC_API_KEY environment variable or the ngc_api_key option."
            )
        if not self.org:
            errors.append(
                "Missing NGC_ORG Configuration: the NGC Org Name was not found in "
                "the NGC_ORG environment variable or the ngc_org option."
            )
        if errors:
            self.fail_json(" ".join(errors))
            # Unreachable but needed for mypy
            return False
        return True

    def base_url(self) -> str:
        """Org (and optional team) scoped API root."""
        endpoint = self.endpoint.rstrip("/")
        if self.team:
            return f"{endpoint}/v2/orgs/{self.org}/teams/{self.team}"
        return f"{endpoint}/v2/orgs/{self.org}"
