#!/usr/bin/env python
"""Unit tests for the nvcf modules' documentation blocks.

Note: Full module execution requires ansible_collections imports,
so the module sources are parsed instead of imported.
"""

import ast
import os

import pytest
import yaml

MODULES_DIR = os.path.join(os.path.dirname(__file__), "../../plugins/modules")
DOC_FRAGMENT = os.path.join(
    os.path.dirname(__file__), "../../plugins/doc_fragments/nvcf_auth.py"
)


def module_strings(path):
    """Top-level string constants (DOCUMENTATION, EXAMPLES, RETURN) of a file."""
    with open(path) as f:
        tree = ast.parse(f.read())
    strings = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Constant):
            for target in node.targets:
                if isinstance(target, ast.Name) and isinstance(node.value.value, str):
                    strings[target.id] = node.value.value
    return strings


@pytest.mark.parametrize("name", ["nvcf_cloud_function", "nvcf_cloud_function_info"])
def test_documentation_blocks_are_valid_yaml(name):
    strings = module_strings(os.path.join(MODULES_DIR, f"{name}.py"))

    documentation = yaml.safe_load(strings["DOCUMENTATION"])
    assert documentation["module"] == name
    assert documentation["extends_documentation_fragment"] == ["nvcf_auth"]
    assert isinstance(yaml.safe_load(strings["EXAMPLES"]), list)
    assert "changed" in yaml.safe_load(strings["RETURN"])


def test_resource_module_documents_every_option():
    strings = module_strings(os.path.join(MODULES_DIR, "nvcf_cloud_function.py"))
    options = yaml.safe_load(strings["DOCUMENTATION"])["options"]

    assert set(options) == {
        "state",
        "id",
        "version_id",
        "import_id",
        "function_id",
        "function_name",
        "helm_chart",
        "helm_chart_service_name",
        "container_image",
        "container_args",
        "container_environment",
        "inference_url",
        "inference_port",
        "health_uri",
        "health",
        "api_body_format",
        "function_type",
        "description",
        "tags",
        "models",
        "resources",
        "secrets",
        "deployment_specifications",
        "authorized_parties",
        "keep_failed_resource",
        "timeouts",
    }
    assert options["timeouts"]["suboptions"]["create"]["default"] == 3600


def test_info_module_options():
    strings = module_strings(os.path.join(MODULES_DIR, "nvcf_cloud_function_info.py"))
    options = yaml.safe_load(strings["DOCUMENTATION"])["options"]

    assert options["function_id"]["required"] is True
    assert options["version_id"]["required"] is True


def test_doc_fragment_lists_connection_options():
    strings = {}
    with open(DOC_FRAGMENT) as f:
        tree = ast.parse(f.read())
    for node in ast.walk(tree):
        if isinstance(node, ast.Assign) and isinstance(node.value, ast.Constant):
            strings[node.targets[0].id] = node.value.value

    options = yaml.safe_load(strings["DOCUMENTATION"])["options"]

    assert set(options) == {"ngc_api_key", "ngc_org", "ngc_team", "ngc_endpoint"}
