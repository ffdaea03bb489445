"""Rewrite git repository URLs so they point at the internal git server."""

import re
import zlib

from gitredirect.errors import TransformError

GIT_URL_RE = re.compile(
    r"^(?P<proto>[a-z]+://)(?P<host_path>.+?)/(?P<repo>[\w\-.]+?)?(?P<git>\.git)?"
    r"(?P<at_ref>@(?P<force>\+)?(?P<ref>[/+\w\-.]+))?"
    r"(?P<git_path>/(?P<git_path_id>info/.*|git-upload-pack|git-receive-pack))?$",
    re.ASCII,
)


def repo_name(source_url: str) -> str:
    """Return the internal repository name for ``source_url``.

    The upstream name gets a CRC-32 of ``host/path/name`` appended so that two
    repositories called ``repo`` under different owners do not collide, while
    ``https://host/org/repo.git`` and ``http://host/org/repo`` still resolve to
    the same internal repository.
    """
    match = GIT_URL_RE.match(source_url)
    if match is None or not match.group("repo"):
        raise TransformError(f"unable to extract the repo name from the url {source_url}")
    name = match.group("repo")
    sanitized = f"{match.group('host_path')}/{name}"
    return f"{name}-{zlib.crc32(sanitized.encode('utf-8'))}"


def git_url(target_base_url: str, source_url: str, push_user: str) -> str:
    """Build the internally addressed URL for ``source_url``.

    Refs (``@refs/tags/v1``) and smart-HTTP suffixes (``/info/refs``,
    ``/git-upload-pack``) on the source are carried over unchanged.
    """
    match = GIT_URL_RE.match(source_url)
    if match is None or not match.group("repo"):
        raise TransformError(f"unable to extract the repo name from the url {source_url}")
    return "{}/{}/{}{}{}{}".format(
        target_base_url.rstrip("/"),
        push_user,
        repo_name(source_url),
        match.group("git") or "",
        match.group("at_ref") or "",
        match.group("git_path") or "",
    )
