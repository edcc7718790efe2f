"""
Integration test fixtures for ansible-nvcf.

Provides fixtures for running Ansible playbooks in integration tests.

Note: Coverage is disabled for integration tests because modules execute
in separate Ansible subprocesses where pytest-cov cannot track them.
"""

import json
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def nvcf_test_image():
    """Container image deployed by the integration tests."""
    image = os.getenv("NVCF_TEST_CONTAINER_IMAGE")
    if not image:
        pytest.skip("NVCF_TEST_CONTAINER_IMAGE is required for integration tests")
    return image


@pytest.fixture(scope="session")
def nvcf_test_instance():
    """GPU and instance type used for test deployments."""
    gpu = os.getenv("NVCF_TEST_GPU")
    instance_type = os.getenv("NVCF_TEST_INSTANCE_TYPE")
    if not gpu or not instance_type:
        pytest.skip("NVCF_TEST_GPU and NVCF_TEST_INSTANCE_TYPE are required")
    return {"gpu_type": gpu, "instance_type": instance_type}


@pytest.fixture
def test_playbooks_dir():
    """Create temporary directory for test playbooks."""
    temp_dir = tempfile.mkdtemp()
    playbooks_dir = Path(temp_dir) / "playbooks"
    playbooks_dir.mkdir()

    yield playbooks_dir

    # Cleanup
    shutil.rmtree(temp_dir)


@pytest.fixture
def create_playbook(test_playbooks_dir):
    """Fixture that returns a function to create test playbook files."""

    def _create_playbook(content, filename="test_playbook.yml"):
        playbook_path = test_playbooks_dir / filename
        with open(playbook_path, "w") as f:
            f.write(content)
        return str(playbook_path)

    return _create_playbook


@pytest.fixture
def run_playbook(ngc_credentials):
    """Fixture that returns a function to run ansible-playbook for localhost tests."""

    def _run_playbook(playbook_path, extra_vars=None):
        cmd = ["ansible-playbook", playbook_path, "-v"]

        # Use the current Python interpreter so requests is available to modules
        cmd.extend(["-e", f"ansible_python_interpreter={sys.executable}"])

        if extra_vars:
            cmd.extend(["-e", json.dumps(extra_vars)])

        env = os.environ.copy()

        project_root = Path(__file__).parent.parent.parent

        # Expose the checkout as the ngc.nvcf collection through a symlink
        collections_temp = Path(tempfile.gettempdir()) / "ansible_test_collections"
        collection_path = collections_temp / "ansible_collections" / "ngc" / "nvcf"

        collection_path.parent.mkdir(parents=True, exist_ok=True)
        if collection_path.is_symlink():
            collection_path.unlink()
        elif collection_path.is_dir():
            shutil.rmtree(collection_path)
        collection_path.symlink_to(project_root)

        env["ANSIBLE_COLLECTIONS_PATH"] = str(collections_temp)

        return subprocess.run(cmd, capture_output=True, text=True, env=env)

    return _run_playbook
