"""AdmissionReview plumbing: requests, results, hooks and JSON patches."""

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from gitredirect.errors import DecodeError, UnsupportedOperationError

CREATE = "CREATE"
UPDATE = "UPDATE"
DELETE = "DELETE"
CONNECT = "CONNECT"

# Static envelope fields needed in AdmissionReview responses
BLANK_ADMISSIONREVIEW = {"apiVersion": "admission.k8s.io/v1", "kind": "AdmissionReview"}


@dataclass(frozen=True)
class PatchOperation:
    """One RFC 6902 operation."""

    op: str
    path: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"op": self.op, "path": self.path, "value": self.value}


def replace_patch_operation(path: str, value: Any) -> PatchOperation:
    return PatchOperation(op="replace", path=path, value=value)


@dataclass
class MutationResult:
    allowed: bool = True
    patch_ops: List[PatchOperation] = field(default_factory=list)
    message: str = ""


@dataclass(frozen=True)
class AdmissionRequest:
    """The parts of an AdmissionReview ``request`` the hooks look at.

    ``raw_object`` keeps the resource as serialized bytes; decoding it into
    something typed is left to the hook that knows the resource shape.
    """

    uid: Optional[str]
    operation: str
    kind: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    raw_object: bytes = b"null"

    @classmethod
    def from_review(cls, body: Any) -> "AdmissionRequest":
        if not isinstance(body, dict) or not isinstance(body.get("request"), dict):
            raise DecodeError("AdmissionReview has no request")
        req = body["request"]
        obj = req.get("object")
        metadata = obj.get("metadata") if isinstance(obj, dict) else None
        if not isinstance(metadata, dict):
            metadata = {}
        return cls(
            uid=req.get("uid"),
            operation=(req.get("operation") or "").upper(),
            kind=(req.get("kind") or {}).get("kind"),
            namespace=req.get("namespace"),
            name=req.get("name") or metadata.get("name"),
            raw_object=json.dumps(obj).encode("utf-8"),
        )


Handler = Callable[[AdmissionRequest], MutationResult]


@dataclass
class Hook:
    """Per-operation handlers for one resource type."""

    create: Handler
    update: Handler
    delete: Optional[Handler] = None
    connect: Optional[Handler] = None

    def execute(self, request: AdmissionRequest) -> MutationResult:
        handlers = {
            CREATE: self.create,
            UPDATE: self.update,
            DELETE: self.delete,
            CONNECT: self.connect,
        }
        if request.operation not in handlers:
            raise UnsupportedOperationError(request.operation or "<empty>")
        handler = handlers[request.operation]
        if handler is None:
            return MutationResult(allowed=True)
        return handler(request)


def encode_patch(patch_ops: List[PatchOperation]) -> str:
    """Serialize patch operations as a base64 JSON patch document."""
    patch_bytes = json.dumps([op.to_dict() for op in patch_ops]).encode("utf-8")
    return base64.b64encode(patch_bytes).decode("utf-8")


def build_review_response(uid: Optional[str], result: MutationResult) -> Dict[str, Any]:
    """Wrap a result in an AdmissionReview v1 response envelope.

    Denied results never carry a patch; allowed ones carry it only when there
    is something to apply.
    """
    response: Dict[str, Any] = {"uid": uid, "allowed": result.allowed}
    if not result.allowed:
        response["status"] = {"code": 400, "message": result.message}
    elif result.patch_ops:
        response["patch"] = encode_patch(result.patch_ops)
        response["patchType"] = "JSONPatch"
    return {**BLANK_ADMISSIONREVIEW, "response": response}
