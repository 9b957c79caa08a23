# clusteradmission

Admission hooks for managed clusters. Each hook takes an `AdmissionRequest`
and returns an `AdmissionResponse`. These are plain dataclasses in
`clusteradmission.admission` and follow the shape of an API server's
admission review.

- `ManagedClusterMutatingAdmissionHook` (`clusteradmission.cluster_mutating`)
  handles create and update requests for `managedclusters` in the
  `cluster.open-cluster-management.io` group. When the cluster's
  `leaseDurationSeconds` is zero, it admits the request with a JSON patch that
  sets the value to 60. If the object cannot be decoded, it denies the request
  with a 400 `BadRequest` status.
- `ManagedClusterValidatingAdmissionHook` (`clusteradmission.cluster_validating`)
  requires every client config URL to be an `https` URL. It then asks a
  subject access reviewer two things:
  - whether the user may change `hubAcceptsClient`. This is asked on create
    when the field is true, and on update when the field changes.
  - whether the user may join the cluster to, or remove it from, the cluster
    set named by the `cluster.open-cluster-management.io/clusterset` label.
    This is asked for the old set and the new set when the label changes.

  Invalid objects get a 400 `BadRequest` status. Refused reviews get a 403
  `Forbidden` status.
- `ManagedClusterSetBindingValidatingAdmissionHook` (`clusteradmission.clustersetbinding`)
  requires a binding's name to equal its `spec.clusterSet`. On create it also
  asks whether the user may bind that cluster set.

Requests for other resources are admitted unchanged. So are requests with
other operations, such as delete.

## Installation

```
pip install .
```

The package has no runtime dependencies.

## Objects

`clusteradmission.objects` provides `ManagedCluster`,
`ManagedClusterSetBinding` and `ClientConfig`. Each has `from_json(raw)` and
`to_json()` methods for the JSON form carried in a request. Malformed input
raises `ObjectDecodeError`, which is a `ValueError`.

## Subject access reviews

The validating hooks need a reviewer, passed to the constructor or to
`initialize(reviewer)`. `SubjectAccessReviewer` wraps a decision function.
The function receives the `SubjectAccessReview` and returns whether the
action is allowed.

Any object with a `review(sar)` method works, as long as the method returns a
review with `allowed` set. If `review` raises, the request is denied with a
403 status and the exception's message. Validating a request that needs a
review before a reviewer has been set raises `RuntimeError`.

```python
from clusteradmission.admission import (
    AdmissionRequest, GroupVersionResource, Operation, SubjectAccessReviewer, UserInfo,
)
from clusteradmission.objects import ClientConfig, ManagedCluster
from clusteradmission.cluster_validating import ManagedClusterValidatingAdmissionHook
from clusteradmission.cluster_mutating import ManagedClusterMutatingAdmissionHook

hook = ManagedClusterValidatingAdmissionHook(SubjectAccessReviewer(lambda sar: True))

cluster = ManagedCluster(
    name="cluster1",
    hub_accepts_client=True,
    client_configs=[ClientConfig(url="https://127.0.0.1:6443")],
)
request = AdmissionRequest(
    resource=GroupVersionResource("cluster.open-cluster-management.io", "v1", "managedclusters"),
    operation=Operation.CREATE,
    obj=cluster.to_json(),
    user_info=UserInfo(username="tester"),
)
print(hook.validate(request).allowed)          # True

patched = ManagedClusterMutatingAdmissionHook().admit(request)
print(patched.patch, patched.patch_type)       # lease duration patch, PatchType.JSON_PATCH
```

`accept_request()`, `deny_request(code, reason, message)` and
`subject_access_review(user_info, attributes)` are helpers for building
responses and reviews.

Each hook reports the resource it is served under. The mutating hook does
this through `mutating_resource()` and the validating hooks through
`validating_resource()`. The result is a `GroupVersionResource` in the
`admission.cluster.open-cluster-management.io` group, together with the
resource name.

## What the package does not do

The package contains no HTTP server and no command. It does not receive
admission reviews over the network, and it does not register itself with an
API server. It also does not talk to a cluster to answer access reviews. The
caller supplies the transport and the reviewer.

## Running the tests

```
pip install .[test]
pytest
```