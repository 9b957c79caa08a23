"""Mutating admission hook that defaults ManagedCluster lease durations."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from clusteradmission.admission import (
    ADMISSION_GROUP,
    BAD_REQUEST,
    CLUSTER_GROUP,
    REASON_BAD_REQUEST,
    AdmissionRequest,
    AdmissionResponse,
    GroupVersionResource,
    Operation,
    PatchType,
    SubjectAccessReviewer,
    accept_request,
    deny_request,
)
from clusteradmission.objects import ManagedCluster, ObjectDecodeError

logger = logging.getLogger(__name__)

DEFAULT_LEASE_DURATION_SECONDS_PATCH = (
    b'[{"op": "replace", "path": "/spec/leaseDurationSeconds", "value": 60}]'
)

_TARGET = (CLUSTER_GROUP, "managedclusters")
_MUTATED_OPERATIONS = frozenset({Operation.CREATE, Operation.UPDATE})
_REGISTERED_NAME = "managedclustermutators"


class ManagedClusterMutatingAdmissionHook:
    """Mutates ManagedCluster create and update requests."""

    def __init__(self) -> None:
        self._reviewer: Optional[SubjectAccessReviewer] = None

    def mutating_resource(self) -> Tuple[GroupVersionResource, str]:
        """Return the resource through which the hook is reached."""
        gvr = GroupVersionResource(
            group=ADMISSION_GROUP, version="v1", resource=_REGISTERED_NAME
        )
        return gvr, _REGISTERED_NAME

    def admit(self, request: AdmissionRequest) -> AdmissionResponse:
        """Admit the request, patching a zero lease duration to 60 seconds."""
        logger.debug("mutate %r operation for object %r", request.operation, request.obj)

        target = (request.resource.group, request.resource.resource)
        if target != _TARGET or request.operation not in _MUTATED_OPERATIONS:
            return accept_request()

        try:
            cluster = ManagedCluster.from_json(request.obj)
        except ObjectDecodeError as exc:
            return deny_request(BAD_REQUEST, REASON_BAD_REQUEST, str(exc))

        if cluster.lease_duration_seconds != 0:
            return accept_request()
        return AdmissionResponse(
            allowed=True,
            patch=DEFAULT_LEASE_DURATION_SECONDS_PATCH,
            patch_type=PatchType.JSON_PATCH,
        )

    def initialize(self, reviewer: Optional[SubjectAccessReviewer]) -> None:
        """Keep the reviewer handed over at startup; mutation never consults it."""
        self._reviewer = reviewer