import base64
import json

import pytest

from conftest import application, review
from gitredirect.errors import DecodeError, UnsupportedOperationError
from gitredirect.operations import (
    AdmissionRequest,
    Hook,
    MutationResult,
    build_review_response,
    replace_patch_operation,
)


def test_from_review_reads_request_fields():
    obj = application(source="https://github.com/org/repo.git")
    request = AdmissionRequest.from_review(review("update", obj, uid="abc"))

    assert request.uid == "abc"
    assert request.operation == "UPDATE"
    assert request.kind == "Application"
    assert request.namespace == "argocd"
    assert request.name == "podinfo"
    assert json.loads(request.raw_object) == obj


@pytest.mark.parametrize("body", [None, [], {}, {"request": "x"}])
def test_from_review_rejects_missing_request(body):
    with pytest.raises(DecodeError):
        AdmissionRequest.from_review(body)


def test_hook_dispatches_by_operation():
    hook = Hook(
        create=lambda r: MutationResult(message="create"),
        update=lambda r: MutationResult(message="update"),
    )
    assert hook.execute(AdmissionRequest(uid="1", operation="CREATE")).message == "create"
    assert hook.execute(AdmissionRequest(uid="1", operation="UPDATE")).message == "update"
    assert hook.execute(AdmissionRequest(uid="1", operation="CONNECT")).allowed is True


def test_hook_rejects_unknown_operation():
    hook = Hook(create=lambda r: MutationResult(), update=lambda r: MutationResult())
    with pytest.raises(UnsupportedOperationError):
        hook.execute(AdmissionRequest(uid="1", operation="PATCH"))


def test_response_with_patch():
    ops = [
        replace_patch_operation("/spec/source/repoURL", "https://git.internal.local/x/repo.git"),
        replace_patch_operation("/metadata/labels", {"a": "b"}),
    ]
    body = build_review_response("uid-1", MutationResult(allowed=True, patch_ops=ops))

    assert body["apiVersion"] == "admission.k8s.io/v1"
    assert body["kind"] == "AdmissionReview"
    response = body["response"]
    assert response["uid"] == "uid-1"
    assert response["allowed"] is True
    assert response["patchType"] == "JSONPatch"
    assert json.loads(base64.b64decode(response["patch"])) == [
        {"op": "replace", "path": "/spec/source/repoURL", "value": "https://git.internal.local/x/repo.git"},
        {"op": "replace", "path": "/metadata/labels", "value": {"a": "b"}},
    ]


def test_denied_response_has_no_patch():
    body = build_review_response("uid-1", MutationResult(allowed=False, message="boom"))
    response = body["response"]
    assert response["allowed"] is False
    assert response["status"]["message"] == "boom"
    assert "patch" not in response


def test_allowed_response_without_patches():
    response = build_review_response("uid-1", MutationResult())["response"]
    assert response == {"uid": "uid-1", "allowed": True}
