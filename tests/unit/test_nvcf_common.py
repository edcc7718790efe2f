#!/usr/bin/env python

import os
import sys
import unittest.mock as mock

from ansible.module_utils.basic import AnsibleModule

# Add both the plugins directory and module_utils to the path
plugins_path = os.path.join(os.path.dirname(__file__), "../../plugins")
sys.path.insert(0, plugins_path)

from plugins.module_utils.nvcf_common import (
    DEFAULT_TIMEOUT_SECONDS,
    NVCFModuleBase,
    nvcf_argument_spec,
    timeout_for,
)


def create_mock_module():
    """Create a mock Ansible module."""
    mock_module = mock.MagicMock(spec=AnsibleModule)
    # Make fail_json raise SystemExit like the real AnsibleModule
    mock_module.fail_json.side_effect = SystemExit
    return mock_module


def test_init():
    mock_module = create_mock_module()
    base = NVCFModuleBase(mock_module)

    assert base.module == mock_module
    assert not hasattr(base, "exit_json")


def test_fail_json():
    mock_module = create_mock_module()
    base = NVCFModuleBase(mock_module)

    try:
        base.fail_json("boom", error_summary="step")
        raise AssertionError("Should have raised SystemExit")
    except SystemExit:
        pass

    mock_module.fail_json.assert_called_once_with(msg="boom", error_summary="step")


def test_logging_delegates_to_module():
    mock_module = create_mock_module()
    base = NVCFModuleBase(mock_module)

    base.debug("trace")
    base.warn("careful")
    base.log("milestone")

    mock_module.debug.assert_called_once_with("trace")
    mock_module.warn.assert_called_once_with("careful")
    mock_module.log.assert_called_once_with("milestone")


def test_nvcf_argument_spec():
    spec = nvcf_argument_spec()

    assert set(spec) == {"ngc_api_key", "ngc_org", "ngc_team", "ngc_endpoint"}
    assert spec["ngc_api_key"]["no_log"] is True


def test_timeout_defaults():
    assert DEFAULT_TIMEOUT_SECONDS == 3600
    assert timeout_for({}, "create") == 3600
    assert timeout_for({"timeouts": None}, "update") == 3600
    assert timeout_for({"timeouts": {"create": None}}, "create") == 3600


def test_timeout_override():
    params = {"timeouts": {"create": 120, "update": 45}}

    assert timeout_for(params, "create") == 120
    assert timeout_for(params, "update") == 45


def test_timeout_must_be_positive():
    import pytest

    from plugins.module_utils.nvcf_errors import ConfigurationError

    with pytest.raises(ConfigurationError) as excinfo:
        timeout_for({"timeouts": {"update": 0}}, "update")

    assert "timeouts.update" in str(excinfo.value)
