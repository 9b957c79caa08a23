"""ManagedCluster and ManagedClusterSetBinding objects and their JSON form."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

RawJSON = Union[bytes, bytearray, str]


class ObjectDecodeError(ValueError):
    """Raised when raw JSON cannot be decoded into an object."""


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _load(raw: RawJSON) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ObjectDecodeError(f"invalid JSON: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ObjectDecodeError(f"expected a JSON object, got {_kind(data)}")
    return data


def _section(data: Dict[str, Any], key: str, path: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ObjectDecodeError(f"{path}: expected object, got {_kind(value)}")
    return value


def _string(data: Dict[str, Any], key: str, path: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ObjectDecodeError(f"{path}: expected string, got {_kind(value)}")
    return value


def _bool(data: Dict[str, Any], key: str, path: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ObjectDecodeError(f"{path}: expected bool, got {_kind(value)}")
    return value


def _int32(data: Dict[str, Any], key: str, path: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ObjectDecodeError(f"{path}: expected integer, got {_kind(value)}")
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ObjectDecodeError(f"{path}: value {value} overflows int32")
    return value


def _labels(metadata: Dict[str, Any]) -> Dict[str, str]:
    labels = _section(metadata, "labels", "metadata.labels")
    for key, value in labels.items():
        if not isinstance(value, str):
            raise ObjectDecodeError(
                f"metadata.labels.{key}: expected string, got {_kind(value)}"
            )
    return dict(labels)


def _metadata_json(name: str, namespace: str, labels: Dict[str, str]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {}
    if name:
        metadata["name"] = name
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = dict(labels)
    return metadata


def _dump(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":")).encode("utf-8")


@dataclass
class ClientConfig:
    """How to reach a managed cluster's API server."""

    url: str = ""
    ca_bundle: bytes = b""

    @classmethod
    def _from_dict(cls, data: Any, path: str) -> "ClientConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ObjectDecodeError(f"{path}: expected object, got {_kind(data)}")
        encoded = _string(data, "caBundle", f"{path}.caBundle")
        try:
            ca_bundle = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ObjectDecodeError(f"{path}.caBundle: invalid base64: {exc}") from exc
        return cls(url=_string(data, "url", f"{path}.url"), ca_bundle=ca_bundle)

    def _to_dict(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {"url": self.url}
        if self.ca_bundle:
            document["caBundle"] = base64.b64encode(self.ca_bundle).decode("ascii")
        return document


@dataclass
class ManagedCluster:
    """The parts of a ManagedCluster that admission looks at."""

    name: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    hub_accepts_client: bool = False
    lease_duration_seconds: int = 0
    client_configs: List[ClientConfig] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: RawJSON) -> "ManagedCluster":
        """Decode a ManagedCluster from raw JSON."""
        data = _load(raw)
        metadata = _section(data, "metadata", "metadata")
        spec = _section(data, "spec", "spec")
        configs = spec.get("managedClusterClientConfigs")
        if configs is None:
            configs = []
        if not isinstance(configs, list):
            raise ObjectDecodeError(
                "spec.managedClusterClientConfigs: expected array, "
                f"got {_kind(configs)}"
            )
        return cls(
            name=_string(metadata, "name", "metadata.name"),
            labels=_labels(metadata),
            hub_accepts_client=_bool(spec, "hubAcceptsClient", "spec.hubAcceptsClient"),
            lease_duration_seconds=_int32(
                spec, "leaseDurationSeconds", "spec.leaseDurationSeconds"
            ),
            client_configs=[
                ClientConfig._from_dict(item, f"spec.managedClusterClientConfigs[{index}]")
                for index, item in enumerate(configs)
            ],
        )

    def to_json(self) -> bytes:
        """Encode this ManagedCluster as compact JSON."""
        spec: Dict[str, Any] = {"hubAcceptsClient": self.hub_accepts_client}
        if self.lease_duration_seconds:
            spec["leaseDurationSeconds"] = self.lease_duration_seconds
        if self.client_configs:
            spec["managedClusterClientConfigs"] = [
                config._to_dict() for config in self.client_configs
            ]
        return _dump(
            {
                "metadata": _metadata_json(self.name, "", self.labels),
                "spec": spec,
            }
        )


@dataclass
class ManagedClusterSetBinding:
    """A binding of a namespace to a ManagedClusterSet."""

    name: str = ""
    namespace: str = ""
    labels: Dict[str, str] = field(default_factory=dict)
    cluster_set: str = ""

    @classmethod
    def from_json(cls, raw: RawJSON) -> "ManagedClusterSetBinding":
        """Decode a ManagedClusterSetBinding from raw JSON."""
        data = _load(raw)
        metadata = _section(data, "metadata", "metadata")
        spec = _section(data, "spec", "spec")
        return cls(
            name=_string(metadata, "name", "metadata.name"),
            namespace=_string(metadata, "namespace", "metadata.namespace"),
            labels=_labels(metadata),
            cluster_set=_string(spec, "clusterSet", "spec.clusterSet"),
        )

    def to_json(self) -> bytes:
        """Encode this binding as compact JSON."""
        return _dump(
            {
                "metadata": _metadata_json(self.name, self.namespace, self.labels),
                "spec": {"clusterSet": self.cluster_set},
            }
        )