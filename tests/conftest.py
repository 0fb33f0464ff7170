from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from deployer.errors import DeployerError, PushFailed


class FakeExecutor:
    """Records every call, fails on the configured push."""

    def __init__(self, fail_push_on: Optional[str] = None, fail_remove: bool = False):
        self.fail_push_on = fail_push_on
        self.fail_remove = fail_remove
        self.calls: List[Tuple] = []
        self.build_script = ""
        self.dockerfile = ""

    def build(self, script_path):
        self.build_script = Path(script_path).read_text()
        self.calls.append(("build", script_path))

    def package(self, dockerfile_path, tag):
        self.dockerfile = Path(dockerfile_path).read_text()
        self.calls.append(("package", dockerfile_path, tag))

    def tag_image(self, source, target):
        self.calls.append(("tag", source, target))

    def push_image(self, tag, config_dir=None):
        self.calls.append(("push", tag, config_dir))
        if tag == self.fail_push_on:
            raise PushFailed(f"push of {tag} rejected")

    def remove_image(self, tag):
        self.calls.append(("remove", tag))
        if self.fail_remove:
            raise DeployerError(f"cannot remove {tag}")

    def patch_workload(self, kubeconfig, namespace, name, kind, patch_json):
        self.calls.append(("patch", kubeconfig, namespace, name, kind, patch_json))

    def named(self, name):
        return [call for call in self.calls if call[0] == name]


MANIFEST = """\
staging:
  build:
    - echo building $DEPLOYER_ENV
    - make dist
  package: |
    FROM alpine:3.19
    ENV APP_ENV=${DEPLOYER_ENV}
    COPY dist /app
"""

PRESET_A = """\
registry: reg-a.example.com
registry_username: ci
registry_password: secret
server: https://a.example.com:6443
token: token-a
image_pull_secrets:
  - regcred-a
resources:
  requests:
    cpu: 100m
    memory: 256Mi
  limits:
    cpu: 200m
    memory: 512Mi
"""

PRESET_B = """\
registry: reg-b.example.com
server: https://b.example.com:6443
image_pull_secrets: " regcred-b , shared "
"""


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def manifest_path(tmp_path: Path) -> Path:
    path = tmp_path / "deployer.yml"
    path.write_text(MANIFEST)
    return path


@pytest.fixture()
def preset_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "presets"
    directory.mkdir()
    (directory / "cluster-a.yml").write_text(PRESET_A)
    (directory / "cluster-b.yaml").write_text(PRESET_B)
    return directory
