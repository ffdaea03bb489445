"""
Mutating Admission Webhook: route Argo CD Application sources through the
internal git server.

Behavior:
- Target resources: Argo CD ``Application`` objects (CREATE and UPDATE).
- Mutation: ``spec.source.repoURL`` and every ``spec.sources[i].repoURL`` are
  rewritten to the equivalent repository on the internal git server, e.g.
    https://github.com/org/repo.git -> https://git.internal.local/zarf-push/repo-<crc32>.git
  On UPDATE a URL whose host already is the git server's host is left alone.
- ``/metadata/labels`` is always replaced with its current value as the last
  patch operation.

Implementation details:
- Receives AdmissionReview (v1) requests at /mutate/argocd-application (HTTPS).
- The git server address and push user are read fresh for every request from
  the cluster state Secret (or GIT_SERVER_ADDRESS for local runs).
- Errors fail closed: the response is allowed=false with the error message,
  and no patch is returned.

Configuration (optional via env): see gitredirect.config.
"""

import logging

from flask import Flask, jsonify, request

from gitredirect import config
from gitredirect.application import new_application_mutation_hook
from gitredirect.errors import MutationError
from gitredirect.operations import AdmissionRequest, MutationResult, build_review_response
from gitredirect.state import provider_from_env

app = Flask(__name__)
logging.basicConfig(level=config.LOG_LEVEL)

HOOK = new_application_mutation_hook(provider_from_env())


def _request_uid(body):
    if isinstance(body, dict) and isinstance(body.get("request"), dict):
        return body["request"].get("uid")
    return None


@app.route("/mutate/argocd-application", methods=["POST"])
@app.route("/mutate", methods=["POST"])
def mutate():
    """Admission endpoint that returns a JSON Patch for Application objects.

    Request: AdmissionReview v1 with `request.object` containing the resource.
    Response: AdmissionReview v1 with `response.allowed=true` and a
              base64-encoded `response.patch` (patchType=JSONPatch), or
              `response.allowed=false` with `status.message` on failure.
    """
    body = request.get_json(force=True, silent=True)
    uid = _request_uid(body)

    try:
        admission_request = AdmissionRequest.from_review(body)
        result = HOOK.execute(admission_request)
    except MutationError as exc:
        app.logger.error("mutation denied uid=%s: %s", uid, exc)
        result = MutationResult(allowed=False, message=str(exc))
    except Exception as exc:  # noqa: BLE001
        app.logger.exception("mutation failed uid=%s: %s", uid, exc)
        result = MutationResult(allowed=False, message=f"internal error: {exc}")
    else:
        app.logger.info(
            "mutation uid=%s kind=%s op=%s ns=%s name=%s patches=%d",
            uid,
            admission_request.kind,
            admission_request.operation,
            admission_request.namespace,
            admission_request.name,
            len(result.patch_ops),
        )

    return jsonify(build_review_response(uid, result))


@app.route("/healthz", methods=["GET"])  # liveness/readiness
def healthz():
    """Simple liveness/readiness probe endpoint."""
    return "ok", 200


def main() -> None:
    """Run the Flask app with TLS using cert/key provided via env or defaults."""
    app.logger.info(
        "Starting webhook on port %s (state %s/%s)",
        config.PORT,
        config.STATE_NAMESPACE,
        config.STATE_SECRET_NAME,
    )
    app.run(host="0.0.0.0", port=config.PORT, ssl_context=(config.CERT_FILE, config.KEY_FILE))


if __name__ == "__main__":
    main()
