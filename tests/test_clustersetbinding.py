import pytest

from clusteradmission.admission import (
    AdmissionRequest,
    AdmissionResponse,
    GroupVersionResource,
    Operation,
    Status,
    SubjectAccessReviewer,
    UserInfo,
)
from clusteradmission.clustersetbinding import (
    ManagedClusterSetBindingValidatingAdmissionHook,
)
from clusteradmission.objects import ManagedClusterSetBinding

BINDINGS = GroupVersionResource(
    group="cluster.open-cluster-management.io",
    version="v1alpha1",
    resource="managedclustersetbindings",
)
CREATE, UPDATE = Operation.CREATE, Operation.UPDATE
PERMITTED = AdmissionResponse(allowed=True)


def refusal(code, reason, message):
    return AdmissionResponse(
        allowed=False,
        result=Status(status="Failure", code=code, reason=reason, message=message),
    )


MISMATCH = refusal(
    400,
    "BadRequest",
    "The ManagedClusterSetBinding must have the same name as the target ManagedClusterSet",
)


def binding(name, cluster_set, labels=None) -> bytes:
    return ManagedClusterSetBinding(
        name=name, namespace="ns1", labels=labels or {}, cluster_set=cluster_set
    ).to_json()


def admission(operation=None, obj=None, old_obj=None, user_info=None, resource=BINDINGS):
    fields = dict(
        operation=operation, obj=obj, old_obj=old_obj, user_info=user_info
    )
    given = {key: value for key, value in fields.items() if value is not None}
    return AdmissionRequest(resource=resource, **given)


def make_hook(allowed: bool, seen=None):
    def decide(sar):
        if seen is not None:
            seen.append(sar)
        return allowed

    return ManagedClusterSetBindingValidatingAdmissionHook(SubjectAccessReviewer(decide))


CASES = [
    ("non-managedclustersetbindings request",
     admission(resource=GroupVersionResource("test.open-cluster-management.io", "v1", "tests")),
     False, PERMITTED),
    ("deleting operation", admission(Operation.DELETE), False, PERMITTED),
    ("creating cluster set binding", admission(CREATE, binding("cs1", "cs1")), True, PERMITTED),
    ("creating cluster set binding with unmatched name",
     admission(CREATE, binding("csb1", "cs1")), False, MISMATCH),
    ("creating cluster set binding without permission",
     admission(CREATE, binding("cs1", "cs1")), False,
     refusal(403, "Forbidden", 'user "" is not allowed to bind cluster set "cs1"')),
    ("updating cluster set binding",
     admission(UPDATE, binding("cs1", "cs1"), binding("cs1", "cs2", {"team": "team1"})),
     True, PERMITTED),
    ("updating cluster set binding with different cluster set",
     admission(UPDATE, binding("cs1", "cs2"), binding("cs1", "cs1")), False, MISMATCH),
]


@pytest.mark.parametrize(
    "request_, allowed, expected",
    [case[1:] for case in CASES],
    ids=[case[0] for case in CASES],
)
def test_validate(request_, allowed, expected):
    assert make_hook(allowed).validate(request_) == expected


def test_validating_resource():
    gvr, singular = ManagedClusterSetBindingValidatingAdmissionHook().validating_resource()
    assert (gvr.group, gvr.version, gvr.resource, singular) == (
        "admission.cluster.open-cluster-management.io",
        "v1",
        "managedclustersetbindingvalidators",
        "managedclustersetbindingvalidators",
    )


def test_bind_review_attributes():
    seen = []
    request = admission(
        CREATE, binding("cs1", "cs1"), user_info=UserInfo(username="tester", groups=["team"])
    )
    assert make_hook(True, seen).validate(request) == PERMITTED
    assert len(seen) == 1
    assert (seen[0].user, seen[0].groups) == ("tester", ["team"])
    attrs = seen[0].resource_attributes
    assert (attrs.group, attrs.resource, attrs.verb, attrs.subresource, attrs.name) == (
        "cluster.open-cluster-management.io",
        "managedclustersets",
        "create",
        "bind",
        "cs1",
    )


def test_update_does_not_review_access():
    seen = []
    request = admission(
        UPDATE, binding("cs1", "cs1", {"owner": "user1"}), binding("cs1", "cs1")
    )
    assert make_hook(False, seen).validate(request) == PERMITTED
    assert seen == []


def test_undecodable_object_is_bad_request():
    response = make_hook(True).validate(admission(CREATE, b"{broken"))
    assert response.allowed is False
    assert response.result.code == 400
    assert response.result.message.startswith(
        "Unable to unmarshal the ManagedClusterSetBinding object: "
    )


def test_review_failure_is_forbidden():
    def decide(sar):
        raise RuntimeError("review unavailable")

    hook = ManagedClusterSetBindingValidatingAdmissionHook()
    hook.initialize(SubjectAccessReviewer(decide))
    response = hook.validate(admission(CREATE, binding("cs1", "cs1")))
    assert response == refusal(403, "Forbidden", "review unavailable")


def test_uninitialized_hook_raises_on_create():
    with pytest.raises(RuntimeError):
        ManagedClusterSetBindingValidatingAdmissionHook().validate(
            admission(CREATE, binding("cs1", "cs1"))
        )