"""Mutation hook for Argo CD ``Application`` resources.

Every ``spec.source.repoURL`` and ``spec.sources[*].repoURL`` is rewritten to
point at the internal git server:

- CREATE: the URL is always rewritten.
- UPDATE: the URL is rewritten only when its host differs from the git
  server's host, so a URL that was already mutated is never mutated again.

The label map is always replaced with itself as the last patch operation.
Any failure aborts the whole request; no partial patch list is returned.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from gitredirect.errors import DecodeError, MutationError, TransformError
from gitredirect.hostnames import hostnames_match
from gitredirect.operations import (
    CREATE,
    UPDATE,
    AdmissionRequest,
    Hook,
    MutationResult,
    PatchOperation,
    replace_patch_operation,
)
from gitredirect.state import GitServerConfig, StateProvider
from gitredirect.transform import git_url

logger = logging.getLogger(__name__)

SOURCE_REPO_URL_PATH = "/spec/source/repoURL"
SOURCES_REPO_URL_PATH = "/spec/sources/{index}/repoURL"
LABELS_PATH = "/metadata/labels"

Transformer = Callable[[str, str, str], str]


@dataclass(frozen=True)
class ApplicationSource:
    repo_url: str


@dataclass
class ApplicationView:
    """The slice of an Application this hook reads; everything else is ignored."""

    source: Optional[ApplicationSource] = None
    sources: List[ApplicationSource] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)


def _decode_source(value: Any, where: str) -> ApplicationSource:
    if not isinstance(value, dict):
        raise DecodeError(f"{where} is not an object")
    repo_url = value.get("repoURL")
    if repo_url is None:
        repo_url = ""
    if not isinstance(repo_url, str):
        raise DecodeError(f"{where}.repoURL is not a string")
    return ApplicationSource(repo_url=repo_url)


def decode_application(raw: bytes) -> ApplicationView:
    """Decode the raw admission object into an ApplicationView."""
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError(exc) from exc
    if not isinstance(obj, dict):
        raise DecodeError("object is not a JSON object")

    spec = obj.get("spec") or {}
    metadata = obj.get("metadata") or {}
    if not isinstance(spec, dict):
        raise DecodeError("spec is not an object")
    if not isinstance(metadata, dict):
        raise DecodeError("metadata is not an object")

    view = ApplicationView()
    if spec.get("source") is not None:
        view.source = _decode_source(spec["source"], "spec.source")

    sources = spec.get("sources") or []
    if not isinstance(sources, list):
        raise DecodeError("spec.sources is not a list")
    view.sources = [
        _decode_source(source, f"spec.sources[{idx}]") for idx, source in enumerate(sources)
    ]

    labels = metadata.get("labels") or {}
    if not isinstance(labels, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in labels.items()
    ):
        raise DecodeError("metadata.labels is not a string map")
    view.labels = labels
    return view


def patched_repo_url(
    repo_url: str,
    git_server: GitServerConfig,
    operation: str,
    transformer: Transformer = git_url,
) -> Optional[str]:
    """Return the rewritten URL, or None when ``repo_url`` must be left alone."""
    is_create = operation == CREATE
    is_update = operation == UPDATE
    is_patched = False

    # Only mutate on update when the host differs, otherwise we would mutate
    # an already mutated URL a second time
    if is_update:
        is_patched = hostnames_match(git_server.address, repo_url)

    if not (is_create or (is_update and not is_patched)):
        return None

    try:
        patched_url = transformer(git_server.address, repo_url, git_server.push_username)
    except MutationError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise TransformError(exc) from exc
    logger.debug("original repoURL of (%s) got mutated to (%s)", repo_url, patched_url)
    return patched_url


def build_patches(
    app: ApplicationView,
    git_server: GitServerConfig,
    operation: str,
    transformer: Transformer = git_url,
) -> List[PatchOperation]:
    """Compute the patch operations: source, then sources by index, then labels."""
    patches: List[PatchOperation] = []

    if app.source is not None:
        patched_url = patched_repo_url(app.source.repo_url, git_server, operation, transformer)
        if patched_url is not None:
            patches.append(replace_patch_operation(SOURCE_REPO_URL_PATH, patched_url))

    for idx, source in enumerate(app.sources):
        patched_url = patched_repo_url(source.repo_url, git_server, operation, transformer)
        if patched_url is not None:
            patches.append(
                replace_patch_operation(SOURCES_REPO_URL_PATH.format(index=idx), patched_url)
            )

    patches.append(replace_patch_operation(LABELS_PATH, app.labels))
    return patches


def mutate_application(
    request: AdmissionRequest,
    provider: StateProvider,
    transformer: Transformer = git_url,
) -> MutationResult:
    """Mutate the repository URLs of an Application to the internal git server."""
    git_server = provider.load_git_server()
    logger.debug("Using the url of (%s) to mutate the ArgoCD Application", git_server.address)

    app = decode_application(request.raw_object)
    logger.debug("Data %s", request.raw_object.decode("utf-8", errors="replace"))

    patches = build_patches(app, git_server, request.operation, transformer)
    return MutationResult(allowed=True, patch_ops=patches)


def new_application_mutation_hook(provider: StateProvider, transformer: Transformer = git_url) -> Hook:
    """Create the Hook that mutates Applications on CREATE and UPDATE."""

    def handle(request: AdmissionRequest) -> MutationResult:
        return mutate_application(request, provider, transformer)

    return Hook(create=handle, update=handle)
