"""Validating admission hook for ManagedCluster create and update requests."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from clusteradmission.admission import (
    ADMISSION_GROUP,
    BAD_REQUEST,
    CLUSTER_GROUP,
    FORBIDDEN,
    REASON_BAD_REQUEST,
    REASON_FORBIDDEN,
    REGISTER_GROUP,
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
from clusteradmission.objects import ManagedCluster, ObjectDecodeError

logger = logging.getLogger(__name__)

CLUSTER_SET_LABEL = "cluster.open-cluster-management.io/clusterset"


class _InvalidClusterError(ValueError):
    """Collects every problem found in a ManagedCluster, one per line."""

    def __init__(self, problems: List[str]) -> None:
        super().__init__("\n".join(problems))
        self.problems = problems


def _is_valid_https_url(url: str) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == "https"


def _cluster_set_name(cluster: ManagedCluster) -> str:
    return cluster.labels.get(CLUSTER_SET_LABEL, "")


class ManagedClusterValidatingAdmissionHook:
    """Validates ManagedCluster create and update requests."""

    def __init__(self, reviewer: Optional[SubjectAccessReviewer] = None) -> None:
        self._reviewer = reviewer

    def validating_resource(self) -> Tuple[GroupVersionResource, str]:
        """Return the resource through which the hook is reached."""
        return (
            GroupVersionResource(
                group=ADMISSION_GROUP,
                version="v1",
                resource="managedclustervalidators",
            ),
            "managedclustervalidators",
        )

    def initialize(self, reviewer: Optional[SubjectAccessReviewer]) -> None:
        """Set the reviewer used to answer subject access reviews."""
        self._reviewer = reviewer

    def validate(self, request: AdmissionRequest) -> AdmissionResponse:
        """Validate the request and return the admission decision."""
        logger.debug(
            "validate %r operation for object %r", request.operation, request.obj
        )

        if (
            request.resource.group != CLUSTER_GROUP
            or request.resource.resource != "managedclusters"
        ):
            return accept_request()

        if request.operation == Operation.CREATE:
            return self._validate_create(request)
        if request.operation == Operation.UPDATE:
            return self._validate_update(request)
        return accept_request()

    def _validate_create(self, request: AdmissionRequest) -> AdmissionResponse:
        try:
            cluster = self._validated_cluster(request.obj)
        except _InvalidClusterError as exc:
            return deny_request(BAD_REQUEST, REASON_BAD_REQUEST, str(exc))

        if cluster.hub_accepts_client:
            response = self._allow_update_accept_field(cluster.name, request.user_info)
            if not response.allowed:
                return response

        return self._allow_set_cluster_set_label(
            request.user_info, "", _cluster_set_name(cluster)
        )

    def _validate_update(self, request: AdmissionRequest) -> AdmissionResponse:
        try:
            old_cluster = ManagedCluster.from_json(request.old_obj)
        except ObjectDecodeError as exc:
            return deny_request(BAD_REQUEST, REASON_BAD_REQUEST, str(exc))

        try:
            new_cluster = self._validated_cluster(request.obj)
        except _InvalidClusterError as exc:
            return deny_request(BAD_REQUEST, REASON_BAD_REQUEST, str(exc))

        if new_cluster.hub_accepts_client != old_cluster.hub_accepts_client:
            response = self._allow_update_accept_field(
                new_cluster.name, request.user_info
            )
            if not response.allowed:
                return response

        return self._allow_set_cluster_set_label(
            request.user_info,
            _cluster_set_name(old_cluster),
            _cluster_set_name(new_cluster),
        )

    @staticmethod
    def _validated_cluster(raw: bytes) -> ManagedCluster:
        problems: List[str] = []
        try:
            cluster = ManagedCluster.from_json(raw)
        except ObjectDecodeError as exc:
            problems.append(str(exc))
            cluster = ManagedCluster()

        for config in cluster.client_configs:
            if not _is_valid_https_url(config.url):
                problems.append(f'url "{config.url}" is invalid in client configs')

        if problems:
            raise _InvalidClusterError(problems)
        return cluster

    def _check_access(
        self, user_info: UserInfo, attributes: ResourceAttributes, denial: str
    ) -> AdmissionResponse:
        if self._reviewer is None:
            raise RuntimeError("admission hook has not been initialized")
        sar = subject_access_review(user_info, attributes)
        try:
            reviewed = self._reviewer.review(sar)
        except Exception as exc:  # any review failure denies the request
            return deny_request(FORBIDDEN, REASON_FORBIDDEN, str(exc))
        if not reviewed.allowed:
            return deny_request(FORBIDDEN, REASON_FORBIDDEN, denial)
        return accept_request()

    def _allow_update_accept_field(
        self, cluster_name: str, user_info: UserInfo
    ) -> AdmissionResponse:
        return self._check_access(
            user_info,
            ResourceAttributes(
                group=REGISTER_GROUP,
                resource="managedclusters",
                verb="update",
                subresource="accept",
                name=cluster_name,
            ),
            f'user "{user_info.username}" cannot update the HubAcceptsClient field',
        )

    def _allow_set_cluster_set_label(
        self, user_info: UserInfo, original: str, current: str
    ) -> AdmissionResponse:
        if original == current:
            return accept_request()

        for cluster_set in (original, current):
            if cluster_set:
                response = self._allow_update_cluster_set(user_info, cluster_set)
                if not response.allowed:
                    return response

        return accept_request()

    def _allow_update_cluster_set(
        self, user_info: UserInfo, cluster_set: str
    ) -> AdmissionResponse:
        return self._check_access(
            user_info,
            ResourceAttributes(
                group=CLUSTER_GROUP,
                resource="managedclustersets",
                verb="create",
                subresource="join",
                name=cluster_set,
            ),
            f'user "{user_info.username}" cannot add/remove a ManagedCluster '
            f'to/from ManagedClusterSet "{cluster_set}"',
        )