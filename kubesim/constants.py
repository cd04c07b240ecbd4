KUBERNETES_VERSION = "v1.28.3"
KUSTOMIZE_VERSION = "v5.0.4-0.20230601165947-6ce0bf390ce3"
HELM_VERSION = "v3.14.0"
HELM_GIT_COMMIT = "3fc9f4b2638e76f26739cd77c7017139be81d0ea"
GO_VERSION = "go1.21.7"

DEFAULT_NAMESPACE = "default"
PROTECTED_NAMESPACES = ("default", "kube-system", "kube-public", "kube-node-lease")
SYSTEM_NAMESPACES = ("kube-system", "kube-public", "kube-node-lease")

CONTROL_PLANE_ROLE = "control-plane"
API_SERVER_PORT = 6443
HOME_DIR = "/home/student"

# Generated identifiers
HASH_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
TEMPLATE_HASH_LENGTH = 10
POD_SUFFIX_LENGTH = 5

# Generated address pools
POD_SUBNET_PREFIX = "10.244"
POD_SUBNET_THIRD_OCTETS = 3
CLUSTER_IP_PREFIX = "10.96"
EXTERNAL_IP_PREFIX = "203.0.113"

DEFAULT_SERVICE_PORT = "80"
DEFAULT_SERVICE_TYPE = "ClusterIP"
SERVICE_TYPES = ("ClusterIP", "NodePort", "LoadBalancer")

CRD_INSTALL_AGE_DAYS = 30
DEFAULT_CHART_VERSION = "0.1.0"
