from contextlib import contextmanager
from typing import Callable, Iterable, List, Optional

import kubesim.constants as const
from kubesim.models.cluster_components import (
    ClusterState,
    Crd,
    CrdScope,
    CustomResource,
    Deployment,
    Namespace,
    Node,
    NodeStatus,
    Pod,
    Release,
    Service,
)
from kubesim.models.crd_registry import CRD_REGISTRY, CrdFactory
from kubesim.models.custom_errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from kubesim.models.seed import (
    seed_deployments,
    seed_namespaces,
    seed_nodes,
    seed_pods,
    seed_services,
)
from kubesim.simulator.notifier import ChangeNotifier
from kubesim.utils.logger import get_logger
from kubesim.utils.output import now_ms
from kubesim.utils.rng import RNG

logger = get_logger(__name__)


class ResourceStore:
    """
    Owner of every simulated collection.

    All mutation goes through the methods below. Preconditions are checked
    before anything changes and violations raise a SimulatorError subclass,
    so a rejected call leaves the state untouched. Every successful mutation
    notifies observers exactly once, or once per outermost `batch()`.
    """

    def __init__(
        self,
        rng: Optional[RNG] = None,
        clock: Callable[[], int] = now_ms,
        notifier: Optional[ChangeNotifier] = None,
        kubernetes_version: str = const.KUBERNETES_VERSION,
        nodes_ready: bool = True,
    ):
        self.rng = rng or RNG()
        self.clock = clock
        self.notifier = notifier if notifier is not None else ChangeNotifier()

        now = self.clock()
        self.nodes: List[Node] = seed_nodes(now, kubernetes_version, nodes_ready)
        self.namespaces: List[Namespace] = seed_namespaces(now)
        self.pods: List[Pod] = seed_pods(now)
        self.deployments: List[Deployment] = seed_deployments(now)
        self.services: List[Service] = seed_services(now)
        self.crds: List[Crd] = []
        self.custom_resources: List[CustomResource] = []
        self.releases: List[Release] = []

        self._batch_depth = 0
        self._pending_change = False
        logger.debug(
            "ResourceStore seeded with %d nodes, %d namespaces, %d pods",
            len(self.nodes),
            len(self.namespaces),
            len(self.pods),
        )

    def now(self) -> int:
        return self.clock()

    # Change notification

    @contextmanager
    def batch(self):
        """Collapse the notifications of several mutations into one."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending_change:
                self._pending_change = False
                self.notifier.notify()

    def _changed(self):
        if self._batch_depth > 0:
            self._pending_change = True
        else:
            self.notifier.notify()

    # Generated identifiers

    def generate_hash(self, length: int = const.TEMPLATE_HASH_LENGTH) -> str:
        return self.rng.token(length, const.HASH_ALPHABET)

    def generate_pod_name(self, prefix: str) -> str:
        return f"{prefix}-{self.generate_hash()}-{self.generate_hash(const.POD_SUFFIX_LENGTH)}"

    def generate_pod_ip(self) -> str:
        third = self.rng.randint(0, const.POD_SUBNET_THIRD_OCTETS)
        return f"{const.POD_SUBNET_PREFIX}.{third}.{self.rng.randint(1, 255)}"

    def generate_cluster_ip(self) -> str:
        return f"{const.CLUSTER_IP_PREFIX}.{self.rng.randint(1, 255)}.{self.rng.randint(1, 255)}"

    def generate_external_ip(self) -> str:
        return f"{const.EXTERNAL_IP_PREFIX}.{self.rng.randint(1, 255)}"

    def generate_node_port(self) -> int:
        return self.rng.randint(30000, 32768)

    def random_worker_node(self) -> Optional[str]:
        workers = [n.name for n in self.nodes if const.CONTROL_PLANE_ROLE not in n.roles]
        if not workers:
            return None
        return self.rng.choice(workers)

    def _new_pod(self, name: str, namespace: str, image: Optional[str], node: Optional[str] = None) -> Pod:
        return Pod(
            name=name,
            namespace=namespace,
            ip=self.generate_pod_ip(),
            node=node or self.random_worker_node(),
            image=image,
            creation_timestamp=self.now(),
        )

    # Nodes

    def list_nodes(self) -> List[Node]:
        return list(self.nodes)

    def get_node(self, name: str) -> Node:
        for node in self.nodes:
            if node.name == name:
                return node
        raise NotFoundError("nodes", name)

    def control_plane_node(self) -> Node:
        for node in self.nodes:
            if const.CONTROL_PLANE_ROLE in node.roles:
                return node
        return self.nodes[0]

    def set_all_nodes_ready(self) -> int:
        """Flip every node to Ready. Returns the number of nodes that changed."""
        flipped = 0
        for node in self.nodes:
            if node.status != NodeStatus.ready.value:
                node.status = NodeStatus.ready.value
                flipped += 1
        if flipped:
            logger.debug("Marked %d nodes Ready", flipped)
            self._changed()
        return flipped

    # Namespaces

    def list_namespaces(self) -> List[Namespace]:
        return list(self.namespaces)

    def has_namespace(self, name: str) -> bool:
        return any(ns.name == name for ns in self.namespaces)

    def get_namespace(self, name: str) -> Namespace:
        for ns in self.namespaces:
            if ns.name == name:
                return ns
        raise NotFoundError("namespaces", name)

    def require_namespace(self, name: str):
        if not self.has_namespace(name):
            raise NotFoundError("namespace", name)

    def create_namespace(self, name: Optional[str]) -> Namespace:
        if not name:
            raise InvalidArgumentError("name is required for namespace creation")
        if self.has_namespace(name):
            raise AlreadyExistsError("namespaces", name)

        namespace = Namespace(name=name, creation_timestamp=self.now())
        self.namespaces.append(namespace)
        logger.debug("Created namespace %s", name)
        self._changed()
        return namespace

    def ensure_namespace(self, name: str) -> bool:
        """Create the namespace unless it exists. Returns True if created."""
        if self.has_namespace(name):
            return False
        self.create_namespace(name)
        return True

    def delete_namespace(self, name: str) -> Namespace:
        namespace = self.get_namespace(name)
        if name in const.PROTECTED_NAMESPACES:
            raise ForbiddenError("namespaces", name, "this namespace may not be deleted")

        self.namespaces.remove(namespace)
        self.pods = [p for p in self.pods if p.namespace != name]
        self.deployments = [d for d in self.deployments if d.namespace != name]
        self.services = [s for s in self.services if s.namespace != name]
        self.custom_resources = [
            r for r in self.custom_resources if r.metadata.namespace != name
        ]
        self.releases = [r for r in self.releases if r.namespace != name]
        logger.debug("Deleted namespace %s and everything in it", name)
        self._changed()
        return namespace

    # Pods

    def list_pods(self, namespace: Optional[str] = None) -> List[Pod]:
        if namespace is None:
            return list(self.pods)
        return [p for p in self.pods if p.namespace == namespace]

    def find_pod(self, name: str, namespace: Optional[str] = None) -> Optional[Pod]:
        for pod in self.pods:
            if pod.name == name and (namespace is None or pod.namespace == namespace):
                return pod
        return None

    def get_pod(self, name: str, namespace: Optional[str] = None) -> Pod:
        pod = self.find_pod(name, namespace)
        if pod is None:
            raise NotFoundError("pods", name)
        return pod

    def create_pod(self, name: Optional[str], namespace: str, image: Optional[str]) -> Pod:
        if not name:
            raise InvalidArgumentError("name is required for pod creation")
        if not image:
            raise InvalidArgumentError("--image is required for pod creation")
        if self.find_pod(name, namespace) is not None:
            raise AlreadyExistsError("pods", name)
        self.require_namespace(namespace)

        pod = self._new_pod(name, namespace, image)
        self.pods.append(pod)
        logger.debug("Created pod %s/%s on %s", namespace, name, pod.node)
        self._changed()
        return pod

    def add_pod_per_node(self, prefix: str, namespace: str, image: Optional[str]) -> List[Pod]:
        """One pod on every node, the way a DaemonSet would place them."""
        self.require_namespace(namespace)
        created = [
            self._new_pod(f"{prefix}-{self.generate_hash(const.POD_SUFFIX_LENGTH)}", namespace, image, node.name)
            for node in self.nodes
        ]
        self.pods.extend(created)
        self._changed()
        return created

    def delete_pod(self, name: str, namespace: str) -> Pod:
        pod = self.get_pod(name, namespace)
        self.pods.remove(pod)
        logger.debug("Deleted pod %s/%s", namespace, name)
        self._changed()
        return pod

    # Deployments

    def list_deployments(self, namespace: Optional[str] = None) -> List[Deployment]:
        if namespace is None:
            return list(self.deployments)
        return [d for d in self.deployments if d.namespace == namespace]

    def find_deployment(self, name: str, namespace: str) -> Optional[Deployment]:
        for deployment in self.deployments:
            if deployment.name == name and deployment.namespace == namespace:
                return deployment
        return None

    def get_deployment(self, name: str, namespace: str) -> Deployment:
        deployment = self.find_deployment(name, namespace)
        if deployment is None:
            raise NotFoundError("deployments.apps", name)
        return deployment

    def owned_pods(self, deployment: Deployment) -> List[Pod]:
        """
        Pods attributed to a deployment: same namespace, name starts with the
        deployment name. This is a prefix match, not an owner reference.
        """
        return [
            p
            for p in self.pods
            if p.namespace == deployment.namespace and p.name.startswith(deployment.name)
        ]

    def create_deployment(
        self,
        name: Optional[str],
        namespace: str,
        image: Optional[str],
        replicas: int = 1,
    ) -> Deployment:
        if not name:
            raise InvalidArgumentError("name is required for deployment creation")
        if not image:
            raise InvalidArgumentError("--image is required for deployment creation")
        if replicas < 0:
            raise InvalidArgumentError("--replicas must be a non-negative number")
        if self.find_deployment(name, namespace) is not None:
            raise AlreadyExistsError("deployments.apps", name)
        self.require_namespace(namespace)

        deployment = Deployment(
            name=name,
            namespace=namespace,
            ready=f"{replicas}/{replicas}",
            up_to_date=replicas,
            available=replicas,
            replicas=replicas,
            image=image,
            creation_timestamp=self.now(),
        )
        self.deployments.append(deployment)
        for _ in range(replicas):
            self.pods.append(self._new_pod(self.generate_pod_name(name), namespace, image))
        logger.debug("Created deployment %s/%s with %d replicas", namespace, name, replicas)
        self._changed()
        return deployment

    def scale_deployment(self, name: str, namespace: str, replicas: int) -> Deployment:
        if replicas < 0:
            raise InvalidArgumentError("--replicas must be a non-negative number")
        deployment = self.get_deployment(name, namespace)

        deployment.replicas = replicas
        deployment.ready = f"{replicas}/{replicas}"
        deployment.up_to_date = replicas
        deployment.available = replicas

        existing = self.owned_pods(deployment)
        if replicas > len(existing):
            for _ in range(replicas - len(existing)):
                self.pods.append(
                    self._new_pod(self.generate_pod_name(name), namespace, deployment.image)
                )
        elif replicas < len(existing):
            # Newest pods go first, older ones survive a scale down
            to_remove = existing[replicas:]
            self.pods = [p for p in self.pods if not any(p is r for r in to_remove)]
        logger.debug(
            "Scaled deployment %s/%s from %d to %d pods", namespace, name, len(existing), replicas
        )
        self._changed()
        return deployment

    def delete_deployment(self, name: str, namespace: str) -> Deployment:
        deployment = self.get_deployment(name, namespace)
        owned = self.owned_pods(deployment)
        self.deployments.remove(deployment)
        self.pods = [p for p in self.pods if not any(p is o for o in owned)]
        logger.debug("Deleted deployment %s/%s and %d pods", namespace, name, len(owned))
        self._changed()
        return deployment

    # Services

    def list_services(self, namespace: Optional[str] = None) -> List[Service]:
        if namespace is None:
            return list(self.services)
        return [s for s in self.services if s.namespace == namespace]

    def find_service(self, name: str, namespace: str) -> Optional[Service]:
        for service in self.services:
            if service.name == name and service.namespace == namespace:
                return service
        return None

    def get_service(self, name: str, namespace: str) -> Service:
        service = self.find_service(name, namespace)
        if service is None:
            raise NotFoundError("services", name)
        return service

    def create_service(
        self,
        name: Optional[str],
        namespace: str,
        port: str = const.DEFAULT_SERVICE_PORT,
        service_type: str = const.DEFAULT_SERVICE_TYPE,
    ) -> Service:
        if not name:
            raise InvalidArgumentError("name is required for service creation")
        if service_type not in const.SERVICE_TYPES:
            raise InvalidArgumentError(
                f'unsupported service type "{service_type}", must be one of {", ".join(const.SERVICE_TYPES)}'
            )
        if self.find_service(name, namespace) is not None:
            raise AlreadyExistsError("services", name)
        self.require_namespace(namespace)

        ports = f"{port}/TCP"
        if service_type in ("NodePort", "LoadBalancer"):
            ports = f"{port}:{self.generate_node_port()}/TCP"
        service = Service(
            name=name,
            namespace=namespace,
            type=service_type,
            cluster_ip=self.generate_cluster_ip(),
            external_ip=self.generate_external_ip() if service_type == "LoadBalancer" else "<none>",
            ports=ports,
            creation_timestamp=self.now(),
        )
        self.services.append(service)
        logger.debug("Created %s service %s/%s", service_type, namespace, name)
        self._changed()
        return service

    def delete_service(self, name: str, namespace: str) -> Service:
        service = self.get_service(name, namespace)
        self.services.remove(service)
        logger.debug("Deleted service %s/%s", namespace, name)
        self._changed()
        return service

    # Custom resources

    def list_crds(self) -> List[Crd]:
        return list(self.crds)

    def register_crds(self, namespaces: Iterable[str]) -> List[Crd]:
        """
        Install every registry CRD that is not installed yet, along with its
        sample instances. Namespaced samples are replicated into `namespaces`.
        Returns the newly registered CRDs.
        """
        now = self.now()
        installed = {crd.name for crd in self.crds}
        targets = [ns for ns in namespaces if self.has_namespace(ns)]
        registered = []
        for entry in CRD_REGISTRY.values():
            crd = CrdFactory.create_crd(entry, now)
            if crd.name in installed:
                continue
            registered.append(crd)
            if crd.scope == CrdScope.cluster.value:
                self.custom_resources.extend(CrdFactory.create_samples(entry, now))
            else:
                for namespace in targets:
                    self.custom_resources.extend(CrdFactory.create_samples(entry, now, namespace))
        if registered:
            self.crds.extend(registered)
            logger.debug("Registered %d CRDs", len(registered))
            self._changed()
        return registered

    def find_crd(self, name: str) -> Optional[Crd]:
        """Look up an installed CRD by full name, kind, plural or singular."""
        key = name.lower()
        for crd in self.crds:
            if key in (crd.name, crd.kind.lower(), crd.plural, crd.singular):
                return crd
        return None

    def list_custom_resources(
        self, kind: Optional[str] = None, namespace: Optional[str] = None
    ) -> List[CustomResource]:
        return [
            r
            for r in self.custom_resources
            if (kind is None or r.kind == kind)
            and (namespace is None or r.metadata.namespace == namespace)
        ]

    # Releases

    def list_releases(self, namespace: Optional[str] = None) -> List[Release]:
        if namespace is None:
            return list(self.releases)
        return [r for r in self.releases if r.namespace == namespace]

    def find_release(self, name: str, namespace: str) -> Optional[Release]:
        for release in self.releases:
            if release.name == name and release.namespace == namespace:
                return release
        return None

    def add_release(self, release: Release) -> Release:
        self.require_namespace(release.namespace)
        self.releases.append(release)
        logger.debug("Recorded release %s/%s (%s)", release.namespace, release.name, release.chart)
        self._changed()
        return release

    def remove_release(self, name: str, namespace: str) -> Optional[Release]:
        release = self.find_release(name, namespace)
        if release is None:
            return None
        self.releases.remove(release)
        self._changed()
        return release

    # Snapshots

    def snapshot(self) -> ClusterState:
        """Deep copy of every collection for external readers."""
        return ClusterState(
            nodes=[n.model_copy(deep=True) for n in self.nodes],
            namespaces=[n.model_copy(deep=True) for n in self.namespaces],
            pods=[p.model_copy(deep=True) for p in self.pods],
            deployments=[d.model_copy(deep=True) for d in self.deployments],
            services=[s.model_copy(deep=True) for s in self.services],
            crds=[c.model_copy(deep=True) for c in self.crds],
            custom_resources=[r.model_copy(deep=True) for r in self.custom_resources],
            releases=[r.model_copy(deep=True) for r in self.releases],
        )
