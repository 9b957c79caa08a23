"""Admission review types shared by the cluster admission hooks.

The hooks mutate and validate create and update operations on
ManagedCluster and ManagedClusterSetBinding objects.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Callable, Dict, List, Optional

CLUSTER_GROUP = "cluster.open-cluster-management.io"
ADMISSION_GROUP = "admission.cluster.open-cluster-management.io"
REGISTER_GROUP = "register.open-cluster-management.io"

STATUS_FAILURE = "Failure"
REASON_BAD_REQUEST = "BadRequest"
REASON_FORBIDDEN = "Forbidden"


class Operation(str, enum.Enum):
    """The operation an admission request was raised for."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class PatchType(str, enum.Enum):
    """The kind of patch carried by an admission response."""

    JSON_PATCH = "JSONPatch"


@dataclass(frozen=True)
class GroupVersionResource:
    """Identifies a REST resource by API group, version and plural name."""

    group: str = ""
    version: str = ""
    resource: str = ""


@dataclass
class UserInfo:
    """The user on whose behalf a request is made."""

    username: str = ""
    uid: str = ""
    groups: List[str] = field(default_factory=list)
    extra: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class Status:
    """The outcome attached to a denied admission response."""

    status: str = STATUS_FAILURE
    code: int = 0
    reason: str = ""
    message: str = ""


@dataclass
class AdmissionRequest:
    """An admission request; ``obj`` and ``old_obj`` hold raw JSON."""

    resource: GroupVersionResource = field(default_factory=GroupVersionResource)
    operation: Optional[Operation] = None
    obj: bytes = b""
    old_obj: bytes = b""
    user_info: UserInfo = field(default_factory=UserInfo)


@dataclass
class AdmissionResponse:
    """The answer of an admission hook."""

    allowed: bool = False
    result: Optional[Status] = None
    patch: Optional[bytes] = None
    patch_type: Optional[PatchType] = None


@dataclass(frozen=True)
class ResourceAttributes:
    """The resource action a subject access review asks about."""

    group: str = ""
    resource: str = ""
    verb: str = ""
    subresource: str = ""
    name: str = ""


@dataclass
class SubjectAccessReview:
    """Asks whether a user may perform an action; ``allowed`` is the answer."""

    user: str = ""
    uid: str = ""
    groups: List[str] = field(default_factory=list)
    extra: Dict[str, List[str]] = field(default_factory=dict)
    resource_attributes: Optional[ResourceAttributes] = None
    allowed: bool = False


class SubjectAccessReviewer:
    """Answers subject access reviews with a decision function.

    The decision function receives the review and returns whether the
    action is allowed; any exception it raises propagates to the caller.
    """

    def __init__(self, decide: Callable[[SubjectAccessReview], bool]) -> None:
        self._decide = decide

    def review(self, sar: SubjectAccessReview) -> SubjectAccessReview:
        """Return a copy of ``sar`` with its ``allowed`` field decided."""
        return dataclasses.replace(sar, allowed=bool(self._decide(sar)))


def accept_request() -> AdmissionResponse:
    """Return a response that admits the request."""
    return AdmissionResponse(allowed=True)


def deny_request(code: int, reason: str, message: str) -> AdmissionResponse:
    """Return a response that denies the request with a failure status."""
    return AdmissionResponse(
        allowed=False,
        result=Status(
            status=STATUS_FAILURE,
            code=int(code),
            reason=reason,
            message=message,
        ),
    )


def subject_access_review(
    user_info: UserInfo, attributes: ResourceAttributes
) -> SubjectAccessReview:
    """Build a review asking whether ``user_info`` may act on ``attributes``."""
    return SubjectAccessReview(
        user=user_info.username,
        uid=user_info.uid,
        groups=list(user_info.groups),
        extra={key: list(values) for key, values in user_info.extra.items()},
        resource_attributes=attributes,
    )


BAD_REQUEST = int(HTTPStatus.BAD_REQUEST)
FORBIDDEN = int(HTTPStatus.FORBIDDEN)