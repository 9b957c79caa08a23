"""Validating admission hook for ManagedClusterSetBinding requests."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from clusteradmission.admission import (
    ADMISSION_GROUP,
    BAD_REQUEST,
    CLUSTER_GROUP,
    FORBIDDEN,
    REASON_BAD_REQUEST,
    REASON_FORBIDDEN,
    AdmissionRequest,
    AdmissionResponse,
    GroupVersionResource,
    Operation,
    ResourceAttributes,
    SubjectAccessReviewer,
    UserInfo,
    accept_request,
    deny_request,
    subject_access_review,
)
from clusteradmission.objects import ManagedClusterSetBinding, ObjectDecodeError

logger = logging.getLogger(__name__)

_TARGET = (CLUSTER_GROUP, "managedclustersetbindings")
_CHECKED_OPERATIONS = frozenset({Operation.CREATE, Operation.UPDATE})
_REGISTERED_NAME = "managedclustersetbindingvalidators"
_NAME_MISMATCH = (
    "The ManagedClusterSetBinding must have the same name as the target ManagedClusterSet"
)


class ManagedClusterSetBindingValidatingAdmissionHook:
    """Validates ManagedClusterSetBinding create and update requests."""

    def __init__(self, reviewer: Optional[SubjectAccessReviewer] = None) -> None:
        self._reviewer = reviewer

    def validating_resource(self) -> Tuple[GroupVersionResource, str]:
        """Return the resource through which the hook is reached."""
        gvr = GroupVersionResource(
            group=ADMISSION_GROUP, version="v1", resource=_REGISTERED_NAME
        )
        return gvr, _REGISTERED_NAME

    def initialize(self, reviewer: Optional[SubjectAccessReviewer]) -> None:
        """Set the reviewer used to answer subject access reviews."""
        self._reviewer = reviewer

    def validate(self, request: AdmissionRequest) -> AdmissionResponse:
        """Validate the request and return the admission decision."""
        logger.debug("validate %r operation for object %r", request.operation, request.obj)

        target = (request.resource.group, request.resource.resource)
        if target != _TARGET or request.operation not in _CHECKED_OPERATIONS:
            return accept_request()

        try:
            binding = ManagedClusterSetBinding.from_json(request.obj)
        except ObjectDecodeError as exc:
            return deny_request(
                BAD_REQUEST,
                REASON_BAD_REQUEST,
                f"Unable to unmarshal the ManagedClusterSetBinding object: {exc}",
            )

        if binding.name != binding.cluster_set:
            return deny_request(BAD_REQUEST, REASON_BAD_REQUEST, _NAME_MISMATCH)

        if request.operation is Operation.CREATE:
            return self._allow_binding(binding.cluster_set, request.user_info)
        return accept_request()

    def _allow_binding(self, cluster_set: str, user_info: UserInfo) -> AdmissionResponse:
        if self._reviewer is None:
            raise RuntimeError("admission hook has not been initialized")
        sar = subject_access_review(
            user_info,
            ResourceAttributes(
                group=CLUSTER_GROUP,
                resource="managedclustersets",
                verb="create",
                subresource="bind",
                name=cluster_set,
            ),
        )
        try:
            reviewed = self._reviewer.review(sar)
        except Exception as exc:  # any review failure denies the request
            return deny_request(FORBIDDEN, REASON_FORBIDDEN, str(exc))
        if reviewed.allowed:
            return accept_request()
        return deny_request(
            FORBIDDEN,
            REASON_FORBIDDEN,
            f'user "{user_info.username}" is not allowed to bind cluster set "{cluster_set}"',
        )