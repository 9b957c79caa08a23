from http import HTTPStatus

import pytest

from clusteradmission.admission import (
    REASON_BAD_REQUEST,
    REASON_FORBIDDEN,
    STATUS_FAILURE,
    AdmissionResponse,
    ResourceAttributes,
    Status,
    SubjectAccessReview,
    SubjectAccessReviewer,
    UserInfo,
    accept_request,
    deny_request,
    subject_access_review,
)


def _attributes(name="cs1"):
    return ResourceAttributes(
        group="cluster.open-cluster-management.io",
        resource="managedclustersets",
        verb="create",
        subresource="bind",
        name=name,
    )


def test_accept_request_allows_without_result():
    response = accept_request()
    assert response == AdmissionResponse(allowed=True)
    assert response.result is None
    assert response.patch is None


def test_deny_request_carries_failure_status():
    response = deny_request(HTTPStatus.FORBIDDEN, REASON_FORBIDDEN, "no way")
    assert response == AdmissionResponse(
        allowed=False,
        result=Status(
            status=STATUS_FAILURE,
            code=HTTPStatus.FORBIDDEN,
            reason=REASON_FORBIDDEN,
            message="no way",
        ),
    )


def test_deny_request_code_is_plain_int():
    response = deny_request(HTTPStatus.BAD_REQUEST, REASON_BAD_REQUEST, "bad")
    assert type(response.result.code) is int
    assert response.result.code == HTTPStatus.BAD_REQUEST


def test_subject_access_review_copies_user_info():
    user = UserInfo(
        username="tester",
        uid="uid-1",
        groups=["system:authenticated"],
        extra={"scopes": ["a", "b"]},
    )
    sar = subject_access_review(user, _attributes())
    assert sar.user == "tester"
    assert sar.uid == "uid-1"
    assert sar.groups == ["system:authenticated"]
    assert sar.extra == {"scopes": ["a", "b"]}
    assert sar.resource_attributes == _attributes()
    assert sar.allowed is False


def test_subject_access_review_is_independent_of_user_info():
    user = UserInfo(username="tester", groups=["g1"], extra={"k": ["v"]})
    sar = subject_access_review(user, _attributes())
    user.groups.append("g2")
    user.extra["k"].append("w")
    assert sar.groups == ["g1"]
    assert sar.extra == {"k": ["v"]}


@pytest.mark.parametrize("decision", [True, False])
def test_reviewer_sets_allowed_from_decision(decision):
    seen = []

    def decide(sar):
        seen.append(sar.resource_attributes.name)
        return decision

    reviewer = SubjectAccessReviewer(decide)
    request = subject_access_review(UserInfo(username="tester"), _attributes("cs9"))
    result = reviewer.review(request)
    assert result.allowed is decision
    assert seen == ["cs9"]
    assert request.allowed is False
    assert result.user == "tester"


def test_reviewer_errors_propagate():
    def decide(sar):
        raise RuntimeError("authorizer unavailable")

    reviewer = SubjectAccessReviewer(decide)
    with pytest.raises(RuntimeError, match="authorizer unavailable"):
        reviewer.review(SubjectAccessReview())