import json

import pytest

from gitredirect.operations import AdmissionRequest
from gitredirect.state import GitServerConfig, StaticStateProvider

INTERNAL_HOST = "https://git.internal.local"
PUSH_USER = "zarf-push"


@pytest.fixture
def git_server():
    return GitServerConfig(address=INTERNAL_HOST, push_username=PUSH_USER)


@pytest.fixture
def provider(git_server):
    return StaticStateProvider(git_server)


def application(source=None, sources=None, labels=None):
    spec = {"project": "default", "destination": {"namespace": "podinfo"}}
    if source is not None:
        spec["source"] = {"repoURL": source, "path": "kustomize"}
    if sources is not None:
        spec["sources"] = [{"repoURL": url, "targetRevision": "HEAD"} for url in sources]
    metadata = {"name": "podinfo", "namespace": "argocd"}
    if labels is not None:
        metadata["labels"] = labels
    return {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": metadata,
        "spec": spec,
    }


def admission_request(operation, obj):
    return AdmissionRequest(
        uid="1234",
        operation=operation,
        kind="Application",
        namespace="argocd",
        name="podinfo",
        raw_object=json.dumps(obj).encode("utf-8"),
    )


def review(operation, obj, uid="1234"):
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "argoproj.io", "version": "v1alpha1", "kind": "Application"},
            "namespace": "argocd",
            "operation": operation,
            "object": obj,
        },
    }
