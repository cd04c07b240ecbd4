import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

import kubesim.constants as const
from kubesim.models.app import CommandResult
from kubesim.models.config import ConfigFile
from kubesim.models.custom_errors import (
    InvalidArgumentError,
    NotFoundError,
    UnsupportedError,
)
from kubesim.models.cluster_components import Pod
from kubesim.simulator.flags import Flags, parse_flags, split_positionals
from kubesim.simulator.formatter import Formatter, check_output_format
from kubesim.simulator.store import ResourceStore
from kubesim.templates.generator import render_describe, render_template
from kubesim.utils.fs import load_manifests
from kubesim.utils.logger import get_logger
from kubesim.utils.output import format_timestamp

logger = get_logger(__name__)

KIND_ALIASES: Dict[str, str] = {
    "node": "nodes",
    "nodes": "nodes",
    "no": "nodes",
    "pod": "pods",
    "pods": "pods",
    "po": "pods",
    "deployment": "deployments",
    "deployments": "deployments",
    "deploy": "deployments",
    "deployment.apps": "deployments",
    "service": "services",
    "services": "services",
    "svc": "services",
    "namespace": "namespaces",
    "namespaces": "namespaces",
    "ns": "namespaces",
    "crd": "crds",
    "crds": "crds",
    "customresourcedefinition": "crds",
    "customresourcedefinitions": "crds",
    "all": "all",
}

# Resource names used in NotFound messages
RESOURCE_NAMES = {
    "nodes": "nodes",
    "pods": "pods",
    "deployments": "deployments.apps",
    "services": "services",
    "namespaces": "namespaces",
    "crds": "customresourcedefinitions.apiextensions.k8s.io",
}

SERVICE_SUBTYPES = {
    "clusterip": "ClusterIP",
    "nodeport": "NodePort",
    "loadbalancer": "LoadBalancer",
}

APPLY_KINDS = ("Namespace", "Deployment", "Service", "Pod")


def resolve_kind(token: str) -> Optional[str]:
    return KIND_ALIASES.get(token.lower())


def split_kind_name(args: List[str]) -> Tuple[Optional[str], Optional[str], List[str]]:
    """
    Accept both `kind/name` and `kind name` spellings.

    Returns (kind, name, remaining args).
    """
    if not args:
        return None, None, []
    if "/" in args[0]:
        kind, name = args[0].split("/", 1)
        return kind, name, args[1:]
    if len(args) >= 2 and not args[1].startswith("-"):
        return args[0], args[1], args[2:]
    return args[0], None, args[1:]


class KubectlRouter:
    """
    Dispatches `kubectl <verb> ...` to a handler.

    Handlers validate against the store before mutating it and raise
    SimulatorError subclasses for every domain error.
    """

    def __init__(self, store: ResourceStore, formatter: Formatter, config: ConfigFile):
        self.store = store
        self.formatter = formatter
        self.config = config
        self.handlers: Dict[str, Callable[[List[str]], CommandResult]] = {
            "get": self.get,
            "describe": self.describe,
            "create": self.create,
            "delete": self.delete,
            "apply": self.apply,
            "scale": self.scale,
            "version": self.version,
            "cluster-info": self.cluster_info,
            "config": self.kubeconfig,
            "logs": self.logs,
            "exec": self.exec,
            "edit": self.not_simulated,
            "patch": self.not_simulated,
            "help": self.help,
            "--help": self.help,
            "-h": self.help,
        }

    def handle(self, args: List[str]) -> CommandResult:
        if not args:
            return self.help([])
        verb = args[0]
        handler = self.handlers.get(verb)
        if handler is None:
            raise InvalidArgumentError(f'unknown command "{verb}" for "kubectl"')
        logger.debug("kubectl %s %s", verb, args[1:])
        if verb in ("edit", "patch"):
            return handler([verb] + args[1:])
        return handler(args[1:])

    def namespace(self, flags: Flags) -> str:
        return flags.get("namespace", "n", default=self.config.default_namespace)

    # get

    def get(self, args: List[str]) -> CommandResult:
        if not args or args[0].startswith("-"):
            raise InvalidArgumentError("You must specify the type of resource to get")

        if "/" in args[0]:
            resource, name = args[0].split("/", 1)
            rest = args[1:]
        else:
            resource = args[0]
            positionals = split_positionals(args[1:])
            name = positionals[0] if positionals else None
            rest = args[1:]

        flags = parse_flags(rest)
        output = flags.get("output", "o", default="table")
        check_output_format(output)
        all_namespaces = flags.given("all-namespaces", "A")
        namespace = self.namespace(flags)

        if name and all_namespaces:
            raise InvalidArgumentError(
                "a resource cannot be retrieved by name across all namespaces", prefix="error"
            )

        kind = resolve_kind(resource)
        if kind == "all":
            return self._get_all(None if all_namespaces else namespace)
        if kind in ("nodes", "namespaces", "crds"):
            return self._get_cluster_scoped(kind, name, output)
        if kind in ("pods", "deployments", "services"):
            return self._get_namespaced(kind, name, output, None if all_namespaces else namespace)

        crd = self.store.find_crd(resource)
        if crd is not None:
            return self._get_custom(crd, name, output, namespace, all_namespaces)
        raise InvalidArgumentError(
            f'the server doesn\'t have a resource type "{resource}"', prefix="error"
        )

    def _get_cluster_scoped(self, kind: str, name: Optional[str], output: str) -> CommandResult:
        if kind == "nodes":
            items = self.store.list_nodes()
        elif kind == "namespaces":
            items = self.store.list_namespaces()
        else:
            items = self.store.list_crds()

        if name:
            item = self._find_by_name(kind, items, name)
            return CommandResult.ok(self.formatter.render_one(kind, item, output))
        return CommandResult.ok(
            self.formatter.render(kind, items, output, empty_message="No resources found")
        )

    def _get_namespaced(self, kind: str, name: Optional[str], output: str, namespace: Optional[str]) -> CommandResult:
        listing = {
            "pods": self.store.list_pods,
            "deployments": self.store.list_deployments,
            "services": self.store.list_services,
        }[kind]
        items = listing(namespace)

        if name:
            item = self._find_by_name(kind, items, name)
            return CommandResult.ok(self.formatter.render_one(kind, item, output))
        return CommandResult.ok(
            self.formatter.render(
                kind,
                items,
                output,
                with_namespace=namespace is None,
                empty_message=self._empty_message(namespace),
            )
        )

    def _get_custom(self, crd, name, output, namespace, all_namespaces) -> CommandResult:
        cluster_scoped = crd.scope == "Cluster"
        scope_namespace = None if (cluster_scoped or all_namespaces) else namespace
        items = self.store.list_custom_resources(kind=crd.kind, namespace=scope_namespace)

        if name:
            for item in items:
                if item.metadata.name == name:
                    return CommandResult.ok(self.formatter.render_one("customresources", item, output))
            raise NotFoundError(f"{crd.plural}.{crd.group}", name)

        with_namespace = all_namespaces and not cluster_scoped
        return CommandResult.ok(
            self.formatter.render(
                "customresources",
                items,
                output,
                with_namespace=with_namespace,
                empty_message=self._empty_message(scope_namespace),
            )
        )

    def _get_all(self, namespace: Optional[str]) -> CommandResult:
        pods = self.store.list_pods(namespace)
        deployments = self.store.list_deployments(namespace)
        services = self.store.list_services(namespace)
        if not (pods or deployments or services):
            return CommandResult.ok(self._empty_message(namespace))
        return CommandResult.ok(self.formatter.render_all(pods, deployments, services))

    def _find_by_name(self, kind: str, items, name: str):
        for item in items:
            if item.name == name:
                return item
        raise NotFoundError(RESOURCE_NAMES[kind], name)

    @staticmethod
    def _empty_message(namespace: Optional[str]) -> str:
        if namespace is None:
            return "No resources found"
        return f"No resources found in {namespace} namespace."

    # describe

    def describe(self, args: List[str]) -> CommandResult:
        if not args:
            raise InvalidArgumentError("You must specify the type of resource to describe")
        resource, name, rest = split_kind_name(args)
        if not name:
            raise InvalidArgumentError("You must specify the name of the resource to describe")

        flags = parse_flags(rest)
        namespace = self.namespace(flags)
        kind = resolve_kind(resource)
        now = self.store.now()

        if kind == "nodes":
            node = self.store.get_node(name)
            pods = [p for p in self.store.list_pods() if p.node == name]
            return CommandResult.ok(render_describe("node", now, node=node, pods=pods))
        if kind == "pods":
            pod = self._lookup_pod(name, flags)
            parts = pod.name.split("-")
            app = parts[0]
            return CommandResult.ok(
                render_describe(
                    "pod",
                    now,
                    pod=pod,
                    app=app,
                    # <deployment>-<template hash>-<suffix>
                    template_hash=parts[-2] if len(parts) >= 3 else "<none>",
                    image=pod.image or f"{app}:latest",
                )
            )
        if kind == "deployments":
            deployment = self.store.get_deployment(name, namespace)
            return CommandResult.ok(
                render_describe(
                    "deployment",
                    now,
                    deployment=deployment,
                    pods=self.store.owned_pods(deployment),
                    container=(deployment.image or deployment.name).split("/")[-1].split(":")[0],
                )
            )
        if kind == "services":
            service = self.store.get_service(name, namespace)
            return CommandResult.ok(
                render_describe("service", now, service=service, ports=_parse_ports(service.ports))
            )
        if kind == "namespaces":
            ns = self.store.get_namespace(name)
            return CommandResult.ok(render_describe("namespace", now, namespace=ns))
        if kind is None and self.store.find_crd(resource) is None:
            raise InvalidArgumentError(
                f'the server doesn\'t have a resource type "{resource}"', prefix="error"
            )
        return CommandResult.ok(
            f'Describe for resource type "{resource}" is not fully implemented in this simulator'
        )

    def _lookup_pod(self, name: str, flags: Flags) -> Pod:
        """
        Without -n the default namespace wins, then any namespace.
        """
        if flags.given("namespace", "n"):
            return self.store.get_pod(name, self.namespace(flags))
        pod = self.store.find_pod(name, self.config.default_namespace)
        if pod is None:
            pod = self.store.find_pod(name)
        if pod is None:
            raise NotFoundError("pods", name)
        return pod

    # create

    def create(self, args: List[str]) -> CommandResult:
        if not args:
            raise InvalidArgumentError("must specify type of resource to create")

        resource = args[0]
        kind = resolve_kind(resource)
        if kind == "services" and len(args) > 2 and args[1].lower() in SERVICE_SUBTYPES:
            # kubectl create service <type> <name> --tcp=<port>:<targetPort>
            service_type = SERVICE_SUBTYPES[args[1].lower()]
            name, rest = args[2], args[3:]
        else:
            service_type = None
            name = args[1] if len(args) > 1 and not args[1].startswith("-") else None
            rest = args[1:]

        flags = parse_flags(rest)
        namespace = self.namespace(flags)

        if kind == "namespaces":
            self.store.create_namespace(name)
            return CommandResult.ok(f"namespace/{name} created")
        if kind == "deployments":
            replicas = self._replicas(flags, default=1)
            self.store.create_deployment(name, namespace, flags.get("image"), replicas)
            return CommandResult.ok(f"deployment.apps/{name} created")
        if kind == "services":
            port = flags.get("port")
            if port is None and flags.get("tcp"):
                port = flags.get("tcp").split(":")[0]
            self.store.create_service(
                name,
                namespace,
                port=port or const.DEFAULT_SERVICE_PORT,
                service_type=service_type or flags.get("type", default=const.DEFAULT_SERVICE_TYPE),
            )
            return CommandResult.ok(f"service/{name} created")
        if kind == "pods":
            self.store.create_pod(name, namespace, flags.get("image"))
            return CommandResult.ok(f"pod/{name} created")
        raise InvalidArgumentError(f'the server doesn\'t support resource type "{resource}"')

    @staticmethod
    def _replicas(flags: Flags, default: Optional[int] = None) -> Optional[int]:
        if not flags.given("replicas"):
            return default
        replicas = flags.get_int("replicas")
        if replicas is None:
            raise InvalidArgumentError("--replicas is required and must be a number")
        return replicas

    # delete

    def delete(self, args: List[str]) -> CommandResult:
        resource, name, rest = split_kind_name(args)
        if not resource or not name:
            raise InvalidArgumentError("You must specify the type of resource to delete and its name")

        flags = parse_flags(rest)
        namespace = self.namespace(flags)
        kind = resolve_kind(resource)

        if kind == "namespaces":
            self.store.delete_namespace(name)
            return CommandResult.ok(f'namespace "{name}" deleted')
        if kind == "pods":
            self.store.delete_pod(name, namespace)
            return CommandResult.ok(f'pod "{name}" deleted')
        if kind == "deployments":
            self.store.delete_deployment(name, namespace)
            return CommandResult.ok(f'deployment.apps "{name}" deleted')
        if kind == "services":
            self.store.delete_service(name, namespace)
            return CommandResult.ok(f'service "{name}" deleted')
        raise InvalidArgumentError(f'the server doesn\'t support resource type "{resource}"')

    # scale

    def scale(self, args: List[str]) -> CommandResult:
        if not args:
            raise InvalidArgumentError("You must specify resource type/name and --replicas")

        resource, name, rest = split_kind_name(args)
        if name is None:
            # Only a name was given: the kind defaults to deployment
            resource, name = "deployment", resource

        flags = parse_flags(rest)
        replicas = flags.get_int("replicas")
        namespace = self.namespace(flags)
        if replicas is None:
            raise InvalidArgumentError("--replicas is required and must be a number")

        if resolve_kind(resource) == "deployments":
            self.store.scale_deployment(name, namespace, replicas)
            return CommandResult.ok(f"deployment.apps/{name} scaled")
        raise InvalidArgumentError(f'scaling for resource type "{resource}" is not supported')

    # apply

    def apply(self, args: List[str]) -> CommandResult:
        flags = parse_flags(args)
        if not flags.given("f", "filename"):
            raise InvalidArgumentError("must specify -f, --filename for apply")

        path = flags.get("f", "filename")
        if not path or not os.path.isfile(path):
            return CommandResult.ok(
                "Note: File-based apply is simulated. Use create commands for specific resources."
            )

        try:
            manifests = load_manifests(path)
        except yaml.YAMLError as err:
            raise InvalidArgumentError(f"error parsing {path}: {err}", prefix="error")
        if not manifests:
            raise InvalidArgumentError("no objects passed to apply", prefix="error")

        namespace = self.namespace(flags)
        plan = self._plan_apply(manifests, namespace)
        lines = []
        with self.store.batch():
            for manifest in plan:
                lines.append(self._apply_one(manifest))
        return CommandResult.ok("\n".join(lines))

    def _plan_apply(self, manifests: List[Dict[str, Any]], default_namespace: str) -> List[Dict[str, Any]]:
        """
        Validate every manifest before anything is applied.
        """
        known_namespaces = {ns.name for ns in self.store.list_namespaces()}
        plan = []
        for manifest in manifests:
            if not isinstance(manifest, dict):
                raise InvalidArgumentError(
                    f"error validating data: expected an object, got {type(manifest).__name__}", prefix="error"
                )
            kind = manifest.get("kind")
            api_version = manifest.get("apiVersion", "v1")
            metadata = manifest.get("metadata") or {}
            name = metadata.get("name")
            if kind not in APPLY_KINDS:
                raise InvalidArgumentError(
                    f'resource mapping not found for name: "{name}": no matches for kind "{kind}" in version "{api_version}"',
                    prefix="error",
                )
            if not name:
                raise InvalidArgumentError(f"{kind} is missing metadata.name", prefix="error")

            spec = manifest.get("spec") or {}
            item = {"kind": kind, "name": name}
            if kind == "Namespace":
                known_namespaces.add(name)
            else:
                item["namespace"] = metadata.get("namespace") or default_namespace
                if item["namespace"] not in known_namespaces:
                    raise NotFoundError("namespace", item["namespace"])
            if kind == "Deployment":
                containers = ((spec.get("template") or {}).get("spec") or {}).get("containers") or []
                item["image"] = containers[0].get("image") if containers else None
                item["replicas"] = _manifest_replicas(name, spec.get("replicas", 1))
            elif kind == "Pod":
                containers = spec.get("containers") or []
                item["image"] = containers[0].get("image") if containers else None
            elif kind == "Service":
                ports = spec.get("ports") or []
                item["port"] = str(ports[0].get("port", const.DEFAULT_SERVICE_PORT)) if ports else const.DEFAULT_SERVICE_PORT
                item["type"] = spec.get("type", const.DEFAULT_SERVICE_TYPE)
                if item["type"] not in const.SERVICE_TYPES:
                    raise InvalidArgumentError(
                        f'Service "{name}" has unsupported type "{item["type"]}", must be one of {", ".join(const.SERVICE_TYPES)}',
                        prefix="error",
                    )
            if kind in ("Deployment", "Pod") and not item["image"]:
                raise InvalidArgumentError(f'{kind} "{name}" must declare a container image', prefix="error")
            plan.append(item)
        return plan

    def _apply_one(self, item: Dict[str, Any]) -> str:
        kind, name = item["kind"], item["name"]
        if kind == "Namespace":
            if self.store.has_namespace(name):
                return f"namespace/{name} unchanged"
            self.store.create_namespace(name)
            return f"namespace/{name} created"
        if kind == "Deployment":
            existing = self.store.find_deployment(name, item["namespace"])
            if existing is None:
                self.store.create_deployment(name, item["namespace"], item["image"], item["replicas"])
                return f"deployment.apps/{name} created"
            if existing.replicas != item["replicas"]:
                self.store.scale_deployment(name, item["namespace"], item["replicas"])
                return f"deployment.apps/{name} configured"
            return f"deployment.apps/{name} unchanged"
        if kind == "Service":
            if self.store.find_service(name, item["namespace"]) is not None:
                return f"service/{name} unchanged"
            self.store.create_service(name, item["namespace"], item["port"], item["type"])
            return f"service/{name} created"
        if self.store.find_pod(name, item["namespace"]) is not None:
            return f"pod/{name} unchanged"
        self.store.create_pod(name, item["namespace"], item["image"])
        return f"pod/{name} created"

    # informational verbs

    def version(self, args: List[str]) -> CommandResult:
        version = self.config.kubernetes_version
        lines = [f"Client Version: {version}", f"Kustomize Version: {const.KUSTOMIZE_VERSION}"]
        if not parse_flags(args).given("client"):
            lines.append(f"Server Version: {version}")
        return CommandResult.ok("\n".join(lines))

    def _server(self) -> str:
        return f"https://{self.store.control_plane_node().internal_ip}:{const.API_SERVER_PORT}"

    def cluster_info(self, args: List[str]) -> CommandResult:
        server = self._server()
        return CommandResult.ok(
            f"Kubernetes control plane is running at {server}\n"
            f"CoreDNS is running at {server}/api/v1/namespaces/kube-system/services/kube-dns:dns/proxy\n"
            "\n"
            "To further debug and diagnose cluster problems, use 'kubectl cluster-info dump'."
        )

    def kubeconfig(self, args: List[str]) -> CommandResult:
        if not args or args[0] == "view":
            return CommandResult.ok(
                render_template(
                    "kubeconfig.yaml.j2",
                    server=self._server(),
                    namespace=self.config.default_namespace,
                )
            )
        if args[0] == "current-context":
            return CommandResult.ok("kubernetes-admin@kubernetes")
        if args[0] == "get-contexts":
            namespace = self.config.default_namespace
            return CommandResult.ok(
                "CURRENT   NAME                          CLUSTER      AUTHINFO           NAMESPACE\n"
                f"*         kubernetes-admin@kubernetes   kubernetes   kubernetes-admin   {namespace}"
            )
        return CommandResult.ok(
            f'Config subcommand "{args[0]}" is not fully implemented in this simulator'
        )

    def logs(self, args: List[str]) -> CommandResult:
        positionals = split_positionals(args)
        if not positionals:
            raise InvalidArgumentError("You must specify a pod name")
        flags = parse_flags(args[1:])
        name = positionals[0]
        if name.startswith("pod/"):
            name = name[len("pod/"):]
        pod = self._lookup_pod(name, flags)

        start = pod.creation_timestamp
        entries = [
            (0, "INFO Starting application..."),
            (878, "INFO Connecting to database"),
            (2211, "INFO Database connection established"),
            (2333, "INFO Server listening on port 8080"),
            (77657, "INFO Health check passed"),
            (152889, "INFO Processing request GET /api/status"),
        ]
        lines = []
        for offset, message in entries:
            stamp = format_timestamp(start + offset)
            millis = (start + offset) % 1000
            lines.append(f"{stamp[:-1]}.{millis:03d}Z {message}")
        tail = flags.get_int("tail")
        if tail is not None and tail >= 0:
            lines = lines[max(0, len(lines) - tail):]
        return CommandResult.ok("\n".join(lines))

    def exec(self, args: List[str]) -> CommandResult:
        raise UnsupportedError("Interactive commands are not supported in this simulator")

    def not_simulated(self, args: List[str]) -> CommandResult:
        return CommandResult.ok(
            f"Note: {args[0]} command simulation is limited. Use create/delete/apply for full control."
        )

    def help(self, args: List[str]) -> CommandResult:
        return CommandResult.ok(render_template("kubectl_help.txt.j2"))


def _parse_ports(ports: str) -> List[Dict[str, str]]:
    """Split a PORT(S) cell ("80:30080/TCP,53/UDP") into describe entries."""
    parsed = []
    for entry in ports.split(","):
        numbers, _, protocol = entry.partition("/")
        port, _, node_port = numbers.partition(":")
        parsed.append({"port": port, "node_port": node_port, "protocol": protocol or "TCP"})
    return parsed


def _manifest_replicas(name: str, value: Any) -> int:
    """spec.replicas of a Deployment manifest as a non-negative int."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        replicas = None
    else:
        try:
            replicas = int(value)
        except ValueError:
            replicas = None
    if replicas is None or replicas < 0:
        raise InvalidArgumentError(
            f'Deployment "{name}" has invalid spec.replicas "{value}", must be a non-negative number',
            prefix="error",
        )
    return replicas
