"""Error kinds raised while mutating an admission request.

Every error is fatal to the request that raised it; the HTTP layer turns it
into a denied AdmissionReview response.
"""


class MutationError(Exception):
    """Base class for failures that abort a mutation."""

    prefix = "mutation failed"

    def __init__(self, detail: object) -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class DecodeError(MutationError):
    prefix = "failed to unmarshal the admission object"


class StateUnavailableError(MutationError):
    prefix = "failed to get git server state"


class HostnameMatchError(MutationError):
    prefix = "unable to compare hostnames"


class TransformError(MutationError):
    prefix = "unable to transform the git url"


class UnsupportedOperationError(MutationError):
    prefix = "unsupported admission operation"
