#!/usr/bin/python
"""
Common utilities for NVCF Ansible modules.
"""

import typing as t

from .nvcf_errors import ConfigurationError

DEFAULT_NGC_ENDPOINT = "https://api.ngc.nvidia.com"
DEFAULT_TIMEOUT_SECONDS = 60 * 60


class NVCFModuleBase:
    """Base class for NVCF Ansible helpers."""

    def __init__(self, module: t.Any) -> None:
        self.module = module

    def debug(self, msg: str) -> None:
        """Trace message, shown with ANSIBLE_DEBUG."""
        self.module.debug(msg)

    def warn(self, msg: str) -> None:
        """Warning surfaced in the task result."""
        self.module.warn(msg)

    def log(self, msg: str) -> None:
        """Lifecycle message sent to the target's system log."""
        self.module.log(msg)

    def fail_json(self, msg: str, **kwargs: t.Any) -> None:
        """Exit with failure."""
        self.module.fail_json(msg=msg, **kwargs)


def nvcf_argument_spec() -> dict[str, t.Any]:
    """Common argument specification for NVCF modules."""
    return {
        "ngc_api_key": {"type": "str", "no_log": True},
        "ngc_org": {"type": "str"},
        "ngc_team": {"type": "str"},
        "ngc_endpoint": {"type": "str"},
    }


def timeout_for(params: dict[str, t.Any], operation: str) -> int:
    """Seconds allowed for ``operation`` ('create' or 'update')."""
    timeouts = params.get("timeouts") or {}
    value = timeouts.get(operation)
    if value is None:
        return DEFAULT_TIMEOUT_SECONDS
    if int(value) <= 0:
        raise ConfigurationError(
            f"timeouts.{operation} must be a positive number of seconds, got {value}"
        )
    return int(value)
