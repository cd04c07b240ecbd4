from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class NodeStatus(str, Enum):
    ready = "Ready"
    not_ready = "NotReady"


class CrdScope(str, Enum):
    namespaced = "Namespaced"
    cluster = "Cluster"


class K8sObject(BaseModel):
    # Attributes serialize as camelCase (internalIp, creationTimestamp, ...)
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    name: str
    creation_timestamp: int = Field(alias="creationTimestamp")  # epoch milliseconds


class Node(K8sObject):
    status: NodeStatus = NodeStatus.ready.value
    roles: str = "worker"
    version: str
    internal_ip: str = Field(alias="internalIp")
    os_image: str = Field(alias="osImage", default="Ubuntu 22.04.3 LTS")
    kernel_version: str = Field(alias="kernelVersion", default="5.15.0-88-generic")
    container_runtime: str = Field(alias="containerRuntime", default="containerd://1.7.2")


class Namespace(K8sObject):
    status: str = "Active"


class Pod(K8sObject):
    namespace: str
    ready: str = "1/1"
    status: str = "Running"
    restarts: int = 0
    ip: Optional[str] = None
    node: Optional[str] = None
    image: Optional[str] = None


class Deployment(K8sObject):
    namespace: str
    ready: str
    up_to_date: int = Field(alias="upToDate")
    available: int
    replicas: int
    image: Optional[str] = None


class Service(K8sObject):
    namespace: str
    type: str = "ClusterIP"
    cluster_ip: str = Field(alias="clusterIp")
    external_ip: str = Field(alias="externalIp", default="<none>")
    ports: str


class CrdDescriptor(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    group: str
    version: str
    kind: str
    plural: str
    singular: str
    scope: CrdScope


class Crd(K8sObject):
    """A registered CustomResourceDefinition, named `<plural>.<group>`."""

    group: str
    version: str
    kind: str
    plural: str
    singular: str
    scope: CrdScope


class CustomResourceMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    namespace: str = ""  # empty for cluster scoped kinds
    creation_timestamp: int = Field(alias="creationTimestamp")
    annotations: Dict[str, str] = {}


class CustomResource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: CustomResourceMetadata
    spec: Dict[str, Any] = {}
    status: Dict[str, Any] = {}


class Release(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    namespace: str
    revision: str = "1"  # upgrades are not modelled
    updated: str
    status: str = "deployed"
    chart: str
    app_version: str = Field(alias="appVersion")
    deployments: List[str] = []  # <namespace>/<name> of the deployments this release created


class ClusterState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nodes: List[Node] = []
    namespaces: List[Namespace] = []
    pods: List[Pod] = []
    deployments: List[Deployment] = []
    services: List[Service] = []
    crds: List[Crd] = []
    custom_resources: List[CustomResource] = Field(alias="customResources", default=[])
    releases: List[Release] = []
