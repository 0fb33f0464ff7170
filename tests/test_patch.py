import json
from datetime import datetime, timedelta, timezone

from deployer.patch import build_patch, patch_to_json, rollout_timestamp
from deployer.preset import Preset
from deployer.utils import LimitOption, parse_workload

NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def _preset(**kwargs) -> Preset:
    values = dict(
        cluster="prod",
        registry="reg.example.com",
        requests_cpu="100m",
        requests_mem="256Mi",
        limits_cpu="200m",
        limits_mem="512Mi",
        image_pull_secrets=[" regcred ", "", "other"],
    )
    values.update(kwargs)
    return Preset(**values)


def _pod_spec(patch):
    return patch["spec"]["template"]["spec"]


def test_container_patch_with_preset_defaults():
    workload = parse_workload("prod/default/deployment/web/app")

    patch = build_patch("reg.example.com/web:prod", workload, _preset(), now=NOW)

    assert patch["spec"]["template"]["metadata"]["annotations"] == {
        "timestamp": rollout_timestamp(NOW)
    }
    pod_spec = _pod_spec(patch)
    assert pod_spec["imagePullSecrets"] == [{"name": "regcred"}, {"name": "other"}]
    assert "initContainers" not in pod_spec
    assert pod_spec["containers"] == [{
        "image": "reg.example.com/web:prod",
        "name": "app",
        "imagePullPolicy": "Always",
        "resources": {
            "requests": {"cpu": "100m", "memory": "256Mi"},
            "limits": {"cpu": "200m", "memory": "512Mi"},
        },
    }]


def test_cpu_override_leaves_memory_alone():
    workload = parse_workload("prod/default/deployment/web/app")

    patch = build_patch("img", workload, _preset(), cpu=LimitOption.parse("50:150"), now=NOW)

    resources = _pod_spec(patch)["containers"][0]["resources"]
    assert resources == {
        "requests": {"cpu": "50m", "memory": "256Mi"},
        "limits": {"cpu": "150m", "memory": "512Mi"},
    }


def test_memory_override_leaves_cpu_alone():
    workload = parse_workload("prod/default/deployment/web/app")

    patch = build_patch("img", workload, _preset(), mem=LimitOption.parse("128:1024"), now=NOW)

    resources = _pod_spec(patch)["containers"][0]["resources"]
    assert resources == {
        "requests": {"cpu": "100m", "memory": "128Mi"},
        "limits": {"cpu": "200m", "memory": "1024Mi"},
    }


def test_explicit_zero_override_keeps_preset_defaults():
    workload = parse_workload("prod/default/deployment/web/app")

    patch = build_patch("img", workload, _preset(), cpu=LimitOption.parse("0:0"), now=NOW)

    resources = _pod_spec(patch)["containers"][0]["resources"]
    assert resources["requests"]["cpu"] == "100m"
    assert resources["limits"]["cpu"] == "200m"


def test_init_container_has_no_resources():
    workload = parse_workload("prod/default/deployment/web/migrate", is_init=True)

    patch = build_patch("img", workload, _preset(), cpu=LimitOption.parse("50:150"), now=NOW)

    pod_spec = _pod_spec(patch)
    assert "containers" not in pod_spec
    assert pod_spec["initContainers"] == [{
        "image": "img",
        "name": "migrate",
        "imagePullPolicy": "Always",
    }]


def test_no_pull_secrets_omits_key():
    workload = parse_workload("prod/default/deployment/web")

    patch = build_patch("img", workload, _preset(image_pull_secrets=[]), now=NOW)

    assert "imagePullSecrets" not in _pod_spec(patch)
    assert _pod_spec(patch)["containers"][0]["name"] == ""


def test_only_timestamp_differs_between_calls():
    workload = parse_workload("prod/default/deployment/web/app")
    later = NOW + timedelta(minutes=5)

    first = build_patch("img", workload, _preset(), now=NOW)
    second = build_patch("img", workload, _preset(), now=later)

    assert first != second
    first["spec"]["template"]["metadata"]["annotations"].pop("timestamp")
    second["spec"]["template"]["metadata"]["annotations"].pop("timestamp")
    assert first == second


def test_timestamp_is_timezone_aware():
    stamp = rollout_timestamp(NOW)

    parsed = datetime.fromisoformat(stamp)
    assert parsed.tzinfo is not None
    assert parsed == NOW
    assert rollout_timestamp(NOW) < rollout_timestamp(NOW + timedelta(seconds=1))


def test_patch_to_json_is_compact():
    workload = parse_workload("prod/default/deployment/web/app")
    patch = build_patch("img", workload, _preset(), now=NOW)

    data = patch_to_json(patch)

    assert isinstance(data, bytes)
    assert b" " not in data
    assert json.loads(data) == patch
