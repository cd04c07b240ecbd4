"""
Fabricated cluster every simulator session starts from.

Ages are expressed in days before the session clock so the AGE column keeps
moving while the session is open.
"""
from typing import List

import kubesim.constants as const
from kubesim.models.cluster_components import (
    Deployment,
    Namespace,
    Node,
    NodeStatus,
    Pod,
    Service,
)
from kubesim.utils.output import days_ago


_NODES = [
    ("node-1", const.CONTROL_PLANE_ROLE, "192.168.1.10"),
    ("node-2", "worker", "192.168.1.11"),
    ("node-3", "worker", "192.168.1.12"),
]

_NAMESPACES = [
    ("default", 45),
    ("kube-system", 45),
    ("kube-public", 45),
    ("kube-node-lease", 45),
    ("production", 30),
    ("staging", 30),
]

# name, namespace, ready, restarts, age in days, ip, node
_PODS = [
    ("nginx-deployment-7d4c8f6d9b-hx2lk", "default", "1/1", 0, 5, "10.244.1.5", "node-2"),
    ("nginx-deployment-7d4c8f6d9b-mt9pq", "default", "1/1", 0, 5, "10.244.2.8", "node-3"),
    ("redis-master-0", "default", "1/1", 1, 12, "10.244.1.12", "node-2"),
    ("postgres-db-85f9c7b8d-xk4jl", "production", "1/1", 0, 18, "10.244.2.15", "node-3"),
    ("api-server-65b8d4f7c9-p2wvn", "production", "2/2", 0, 7, "10.244.1.20", "node-2"),
    ("coredns-5d78c9869d-7hqxm", "kube-system", "1/1", 3, 45, "10.244.0.2", "node-1"),
    ("coredns-5d78c9869d-k9plz", "kube-system", "1/1", 2, 45, "10.244.0.3", "node-1"),
    ("etcd-node-1", "kube-system", "1/1", 1, 45, "192.168.1.10", "node-1"),
    ("kube-apiserver-node-1", "kube-system", "1/1", 2, 45, "192.168.1.10", "node-1"),
    ("kube-controller-manager-node-1", "kube-system", "1/1", 1, 45, "192.168.1.10", "node-1"),
    ("kube-proxy-6lxrt", "kube-system", "1/1", 0, 45, "192.168.1.10", "node-1"),
    ("kube-proxy-m8w4p", "kube-system", "1/1", 0, 45, "192.168.1.11", "node-2"),
    ("kube-proxy-tn2vx", "kube-system", "1/1", 0, 45, "192.168.1.12", "node-3"),
    ("kube-scheduler-node-1", "kube-system", "1/1", 1, 45, "192.168.1.10", "node-1"),
]

# name, namespace, replicas, age in days, image
_DEPLOYMENTS = [
    ("nginx-deployment", "default", 2, 5, "nginx:1.25"),
    ("redis-master", "default", 1, 12, "redis:7.2"),
    ("postgres-db", "production", 1, 18, "postgres:16"),
    ("api-server", "production", 1, 7, "acme/api-server:2.4.1"),
    ("coredns", "kube-system", 2, 45, "registry.k8s.io/coredns/coredns:v1.10.1"),
]

# name, namespace, type, cluster ip, external ip, ports, age in days
_SERVICES = [
    ("kubernetes", "default", "ClusterIP", "10.96.0.1", "<none>", "443/TCP", 45),
    ("nginx-service", "default", "LoadBalancer", "10.96.15.20", "203.0.113.42", "80:30080/TCP", 5),
    ("redis-service", "default", "ClusterIP", "10.96.22.15", "<none>", "6379/TCP", 12),
    ("postgres-service", "production", "ClusterIP", "10.96.35.8", "<none>", "5432/TCP", 18),
    ("api-service", "production", "NodePort", "10.96.40.12", "<none>", "8080:32000/TCP", 7),
    ("kube-dns", "kube-system", "ClusterIP", "10.96.0.10", "<none>", "53/UDP,53/TCP,9153/TCP", 45),
]


def seed_nodes(now: int, version: str, ready: bool = True) -> List[Node]:
    status = NodeStatus.ready.value if ready else NodeStatus.not_ready.value
    return [
        Node(
            name=name,
            status=status,
            roles=roles,
            version=version,
            internal_ip=ip,
            creation_timestamp=days_ago(45, now),
        )
        for name, roles, ip in _NODES
    ]


def seed_namespaces(now: int) -> List[Namespace]:
    return [
        Namespace(name=name, creation_timestamp=days_ago(age, now))
        for name, age in _NAMESPACES
    ]


def seed_pods(now: int) -> List[Pod]:
    return [
        Pod(
            name=name,
            namespace=namespace,
            ready=ready,
            restarts=restarts,
            ip=ip,
            node=node,
            creation_timestamp=days_ago(age, now),
        )
        for name, namespace, ready, restarts, age, ip, node in _PODS
    ]


def seed_deployments(now: int) -> List[Deployment]:
    return [
        Deployment(
            name=name,
            namespace=namespace,
            ready=f"{replicas}/{replicas}",
            up_to_date=replicas,
            available=replicas,
            replicas=replicas,
            image=image,
            creation_timestamp=days_ago(age, now),
        )
        for name, namespace, replicas, age, image in _DEPLOYMENTS
    ]


def seed_services(now: int) -> List[Service]:
    return [
        Service(
            name=name,
            namespace=namespace,
            type=svc_type,
            cluster_ip=cluster_ip,
            external_ip=external_ip,
            ports=ports,
            creation_timestamp=days_ago(age, now),
        )
        for name, namespace, svc_type, cluster_ip, external_ip, ports, age in _SERVICES
    ]
