"""
Declarative tables behind the package-manager and fetch simulators.

Adding a simulated chart or bootstrap script is a data change here: the
simulators only interpret these rules.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class ChartComponent(BaseModel):
    name: str
    replicas: int = 1
    # Empty: release namespace. Otherwise "<release namespace>-<suffix>".
    namespace_suffix: str = ""
    image: Optional[str] = None


class ChartRule(BaseModel):
    pattern: str  # substring of the chart name
    app_version: Optional[str] = None
    components: List[ChartComponent] = []
    install_crds: bool = False


CHART_RULES: List[ChartRule] = [
    ChartRule(
        pattern="openchoreo-control-plane",
        app_version="0.3.2",
        install_crds=True,
        components=[
            ChartComponent(name="controller-manager", image="ghcr.io/openchoreo/controller:v0.3.2"),
            ChartComponent(name="openchoreo-api", image="ghcr.io/openchoreo/openchoreo-api:v0.3.2"),
            ChartComponent(name="cert-manager", image="quay.io/jetstack/cert-manager-controller:v1.14.4"),
        ],
    ),
    ChartRule(
        pattern="openchoreo-data-plane",
        app_version="0.3.2",
        components=[
            ChartComponent(name="cluster-agent", image="ghcr.io/openchoreo/cluster-agent:v0.3.2"),
            ChartComponent(name="envoy-gateway", namespace_suffix="gateway", image="envoyproxy/gateway:v1.0.1"),
            ChartComponent(name="external-secrets", image="ghcr.io/external-secrets/external-secrets:v0.9.13"),
        ],
    ),
    ChartRule(
        pattern="openchoreo-build-plane",
        app_version="0.3.2",
        components=[
            ChartComponent(name="argo-workflows-server", image="quay.io/argoproj/argocli:v3.5.5"),
            ChartComponent(name="argo-workflows-controller", image="quay.io/argoproj/workflow-controller:v3.5.5"),
            ChartComponent(name="registry", image="registry:2"),
        ],
    ),
    ChartRule(
        pattern="ingress-nginx",
        app_version="1.10.0",
        components=[
            ChartComponent(name="ingress-nginx-controller", image="registry.k8s.io/ingress-nginx/controller:v1.10.0"),
        ],
    ),
    ChartRule(
        pattern="cert-manager",
        app_version="v1.14.4",
        components=[
            ChartComponent(name="cert-manager", image="quay.io/jetstack/cert-manager-controller:v1.14.4"),
            ChartComponent(name="cert-manager-cainjector", image="quay.io/jetstack/cert-manager-cainjector:v1.14.4"),
            ChartComponent(name="cert-manager-webhook", image="quay.io/jetstack/cert-manager-webhook:v1.14.4"),
        ],
    ),
    ChartRule(
        pattern="redis",
        app_version="7.2.4",
        components=[ChartComponent(name="redis-master", image="redis:7.2.4")],
    ),
]


def find_chart_rule(chart_name: str) -> Optional[ChartRule]:
    for rule in CHART_RULES:
        if rule.pattern in chart_name:
            return rule
    return None


class StepAction(str, Enum):
    message = "message"
    create_namespace = "create_namespace"
    deploy = "deploy"
    per_node_pod = "per_node_pod"
    nodes_ready = "nodes_ready"
    helm_install = "helm_install"


class ScriptStep(BaseModel):
    action: StepAction
    message: str = ""
    namespace: str = ""
    name: str = ""
    replicas: int = 1
    image: Optional[str] = None
    chart: str = ""


class ScriptRule(BaseModel):
    pattern: str  # substring of the fetched URL
    description: str
    steps: List[ScriptStep] = []


SCRIPT_RULES: List[ScriptRule] = [
    ScriptRule(
        pattern="get-helm-3",
        description="Installs the latest helm 3 client",
        steps=[
            ScriptStep(action=StepAction.message, message="Downloading https://get.helm.sh/helm-v3.14.0-linux-amd64.tar.gz"),
            ScriptStep(action=StepAction.message, message="Verifying checksum... Done."),
            ScriptStep(action=StepAction.message, message="Preparing to install helm into /usr/local/bin"),
            ScriptStep(action=StepAction.message, message="helm installed into /usr/local/bin/helm"),
        ],
    ),
    ScriptRule(
        pattern="calico",
        description="Installs the Calico CNI plugin and marks every node Ready",
        steps=[
            ScriptStep(action=StepAction.message, message="Installing Calico CNI v3.26.1..."),
            ScriptStep(
                action=StepAction.deploy,
                namespace="kube-system",
                name="calico-kube-controllers",
                image="docker.io/calico/kube-controllers:v3.26.1",
                message="deployment.apps/calico-kube-controllers created",
            ),
            ScriptStep(
                action=StepAction.per_node_pod,
                namespace="kube-system",
                name="calico-node",
                image="docker.io/calico/node:v3.26.1",
                message="daemonset.apps/calico-node created",
            ),
            ScriptStep(action=StepAction.nodes_ready, message="Waiting for nodes to become Ready... done"),
            ScriptStep(action=StepAction.message, message="Calico CNI installed successfully"),
        ],
    ),
    ScriptRule(
        pattern="get.k3s.io",
        description="Bootstraps a lightweight Kubernetes control plane",
        steps=[
            ScriptStep(action=StepAction.message, message="[INFO]  Finding release for channel stable"),
            ScriptStep(action=StepAction.message, message="[INFO]  Using v1.28.3+k3s1 as release"),
            ScriptStep(action=StepAction.message, message="[INFO]  systemd: Starting k3s"),
            ScriptStep(action=StepAction.nodes_ready, message="[INFO]  All nodes reported Ready"),
        ],
    ),
    ScriptRule(
        pattern="openchoreo",
        description="Installs the OpenChoreo control, data and build planes",
        steps=[
            ScriptStep(action=StepAction.message, message="Installing OpenChoreo..."),
            ScriptStep(
                action=StepAction.helm_install,
                name="openchoreo-control-plane",
                namespace="openchoreo-control-plane",
                chart="oci://ghcr.io/openchoreo/helm-charts/openchoreo-control-plane",
                message="Control plane installed",
            ),
            ScriptStep(
                action=StepAction.helm_install,
                name="openchoreo-data-plane",
                namespace="openchoreo-data-plane",
                chart="oci://ghcr.io/openchoreo/helm-charts/openchoreo-data-plane",
                message="Data plane installed",
            ),
            ScriptStep(
                action=StepAction.helm_install,
                name="openchoreo-build-plane",
                namespace="openchoreo-build-plane",
                chart="oci://ghcr.io/openchoreo/helm-charts/openchoreo-build-plane",
                message="Build plane installed",
            ),
            ScriptStep(action=StepAction.message, message="OpenChoreo installation complete"),
        ],
    ),
]


def find_script_rule(url: str) -> Optional[ScriptRule]:
    for rule in SCRIPT_RULES:
        if rule.pattern in url:
            return rule
    return None
