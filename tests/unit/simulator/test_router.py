"""
kubectl command router tests
"""

import json
import os

import pytest
import yaml


class TestGet:
    """Test kubectl get"""

    def test_get_pods_default_namespace(self, run):
        """Test pods are listed from the default namespace"""
        result = run("kubectl get pods")
        assert not result.is_error
        lines = result.output.splitlines()
        assert lines[0].startswith("NAME")
        assert len(lines) == 4

    def test_get_pods_all_namespaces(self, run):
        """Test -A prepends the NAMESPACE column"""
        lines = run("kubectl get pods -A").output.splitlines()
        assert lines[0].startswith("NAMESPACE")
        assert len(lines) == 15

    def test_get_pods_other_namespace(self, run):
        """Test -n selects the namespace"""
        output = run("kubectl get po -n kube-system").output
        assert "coredns-5d78c9869d-7hqxm" in output
        assert "nginx-deployment" not in output

    def test_get_by_name(self, run):
        """Test a name filters to one object"""
        lines = run("kubectl get deployment nginx-deployment").output.splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("nginx-deployment")

    def test_get_by_kind_slash_name(self, run):
        """Test kind/name spelling"""
        result = run("kubectl get svc/kubernetes")
        assert result.output.splitlines()[1].startswith("kubernetes")

    def test_get_missing_pod(self, run):
        """Test NotFound for an unknown name"""
        result = run("kubectl get pod ghost")
        assert result.is_error
        assert result.output == 'Error from server (NotFound): pods "ghost" not found'

    def test_get_by_name_across_namespaces(self, run):
        """Test a name cannot be combined with -A"""
        result = run("kubectl get pods redis-master-0 -A")
        assert result.is_error
        assert result.output == "error: a resource cannot be retrieved by name across all namespaces"

    def test_unknown_kind(self, run):
        """Test unknown resource types"""
        result = run("kubectl get widgets")
        assert result.is_error
        assert result.output == "error: the server doesn't have a resource type \"widgets\""

    def test_missing_kind(self, run):
        """Test get without a kind"""
        assert run("kubectl get").is_error

    def test_unknown_output_format(self, run):
        """Test -o validation"""
        result = run("kubectl get pods -o xml")
        assert result.is_error
        assert result.output.startswith("error: unable to match a printer")

    def test_json_output(self, run):
        """Test -o json lists items"""
        data = json.loads(run("kubectl get pods -o json").output)
        assert len(data["items"]) == 3
        assert {"name", "namespace", "creationTimestamp", "age"} <= set(data["items"][0])

    def test_yaml_output_parses(self, run):
        """Test -o yaml of a deployment is readable YAML"""
        data = yaml.safe_load(run("kubectl get deploy nginx-deployment -o yaml").output)
        assert data["name"] == "nginx-deployment"
        assert data["upToDate"] == 2

    def test_wide_nodes(self, run):
        """Test the wide node layout"""
        output = run("kubectl get nodes -o wide").output
        assert "INTERNAL-IP" in output and "192.168.1.11" in output

    def test_empty_namespace(self, run):
        """Test the empty listing message"""
        run("kubectl create namespace empty")
        assert run("kubectl get pods -n empty").output == "No resources found in empty namespace."

    def test_get_namespaces(self, run):
        """Test the namespace list"""
        output = run("kubectl get ns").output
        assert "kube-node-lease" in output and "staging" in output

    def test_get_all(self, run):
        """Test get all renders three sections"""
        output = run("kubectl get all").output
        assert "pod/nginx-deployment-7d4c8f6d9b-hx2lk" in output
        assert "deployment.apps/nginx-deployment" in output
        assert "service/kubernetes" in output

    def test_crds_before_install(self, run):
        """Test no CRDs are installed at start"""
        assert run("kubectl get crds").output == "No resources found"
        assert run("kubectl get projects").is_error


class TestCreateDeleteScale:
    """Test mutating verbs"""

    def test_create_namespace(self, run, store):
        """Test namespace creation and duplicates"""
        assert run("kubectl create namespace demo").output == "namespace/demo created"
        assert store.has_namespace("demo")
        result = run("kubectl create ns demo")
        assert result.is_error
        assert result.output == 'Error from server (AlreadyExists): namespaces "demo" already exists'

    def test_create_deployment(self, run, store):
        """Test deployment creation with replicas"""
        result = run("kubectl create deployment web --image=nginx --replicas=3")
        assert result.output == "deployment.apps/web created"
        assert len([p for p in store.list_pods("default") if p.name.startswith("web-")]) == 3

    def test_create_deployment_requires_image(self, run):
        """Test --image is mandatory"""
        result = run("kubectl create deployment web")
        assert result.is_error
        assert result.output == "Error: --image is required for deployment creation"

    def test_create_deployment_missing_namespace(self, run):
        """Test the namespace must exist"""
        result = run("kubectl create deployment web --image=nginx -n nope")
        assert result.output == 'Error from server (NotFound): namespace "nope" not found'

    def test_create_service(self, run, store):
        """Test service creation with --port and --type"""
        assert run("kubectl create service web --port=8080 --type=NodePort").output == "service/web created"
        service = store.find_service("web", "default")
        assert service.type == "NodePort"
        assert service.ports.startswith("8080:")

    def test_create_service_subtype_form(self, run, store):
        """Test kubectl create service <type> <name> --tcp"""
        assert run("kubectl create service loadbalancer shop --tcp=443:8443").output == "service/shop created"
        service = store.find_service("shop", "default")
        assert service.type == "LoadBalancer"
        assert service.ports.startswith("443:")

    def test_create_pod(self, run, store):
        """Test pod creation"""
        assert run("kubectl create pod debug --image=busybox").output == "pod/debug created"
        assert store.find_pod("debug", "default").image == "busybox"

    def test_create_unknown_kind(self, run):
        """Test unsupported kinds are rejected"""
        assert run("kubectl create configmap app").is_error

    def test_delete_each_kind(self, run):
        """Test delete messages"""
        run("kubectl create namespace demo")
        assert run("kubectl delete pod redis-master-0").output == 'pod "redis-master-0" deleted'
        assert run("kubectl delete deployment/nginx-deployment").output == 'deployment.apps "nginx-deployment" deleted'
        assert run("kubectl delete svc redis-service").output == 'service "redis-service" deleted'
        assert run("kubectl delete ns demo").output == 'namespace "demo" deleted'

    def test_delete_protected_namespace(self, run, store):
        """Test kube-system cannot be deleted"""
        before = len(store.list_namespaces())
        result = run("kubectl delete namespace kube-system")
        assert result.is_error
        assert "kube-system" in result.output
        assert len(store.list_namespaces()) == before

    def test_scale(self, run, store):
        """Test create then scale down"""
        run("kubectl create deployment web --image=nginx --replicas=3")
        assert run("kubectl scale deployment web --replicas=1").output == "deployment.apps/web scaled"
        assert len([p for p in store.list_pods() if p.name.startswith("web-")]) == 1

    @pytest.mark.parametrize(
        "line",
        [
            "kubectl scale deployment/nginx-deployment --replicas 4",
            "kubectl scale nginx-deployment --replicas=4",
        ],
    )
    def test_scale_spellings(self, run, store, line):
        """Test kind/name and bare name forms"""
        assert not run(line).is_error
        assert store.get_deployment("nginx-deployment", "default").replicas == 4

    @pytest.mark.parametrize(
        "line",
        ["kubectl scale deployment web", "kubectl scale deployment nginx-deployment --replicas=lots"],
    )
    def test_scale_requires_numeric_replicas(self, run, line):
        """Test the replicas error"""
        result = run(line)
        assert result.is_error
        assert result.output == "Error: --replicas is required and must be a number"


class TestApply:
    """Test kubectl apply -f"""

    MANIFEST = """
apiVersion: v1
kind: Namespace
metadata:
  name: shop
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: cart
  namespace: shop
spec:
  replicas: 2
  template:
    spec:
      containers:
        - name: cart
          image: acme/cart:1.0
---
apiVersion: v1
kind: Service
metadata:
  name: cart
  namespace: shop
spec:
  type: NodePort
  ports:
    - port: 8080
"""

    def write(self, directory, text):
        path = os.path.join(directory, "manifest.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_apply_creates_then_unchanged(self, run, store, temp_output_dir):
        """Test apply is idempotent"""
        path = self.write(temp_output_dir, self.MANIFEST)
        assert run(f"kubectl apply -f {path}").output == (
            "namespace/shop created\ndeployment.apps/cart created\nservice/cart created"
        )
        assert len(store.owned_pods(store.get_deployment("cart", "shop"))) == 2
        assert run(f"kubectl apply -f {path}").output == (
            "namespace/shop unchanged\ndeployment.apps/cart unchanged\nservice/cart unchanged"
        )

    def test_apply_reconfigures_replicas(self, run, store, temp_output_dir):
        """Test a changed replica count scales the deployment"""
        path = self.write(temp_output_dir, self.MANIFEST)
        run(f"kubectl apply -f {path}")
        self.write(temp_output_dir, self.MANIFEST.replace("replicas: 2", "replicas: 4"))
        assert "deployment.apps/cart configured" in run(f"kubectl apply -f {path}").output
        assert store.get_deployment("cart", "shop").replicas == 4

    def test_apply_rejects_whole_file(self, run, store, temp_output_dir):
        """Test an unsupported kind rejects the file before any change"""
        path = self.write(temp_output_dir, self.MANIFEST + "---\napiVersion: networking.k8s.io/v1\nkind: Ingress\nmetadata:\n  name: web\n")
        result = run(f"kubectl apply -f {path}")
        assert result.is_error
        assert 'no matches for kind "Ingress"' in result.output
        assert not store.has_namespace("shop")

    @pytest.mark.parametrize(
        "old,new,message",
        [
            ("type: NodePort", "type: ExternalName", 'unsupported type "ExternalName"'),
            ("replicas: 2", "replicas: -2", 'invalid spec.replicas "-2"'),
            ("replicas: 2", "replicas: three", 'invalid spec.replicas "three"'),
        ],
    )
    def test_apply_invalid_field_rejects_whole_file(self, run, store, temp_output_dir, old, new, message):
        """Test field errors in a later document leave earlier ones unapplied"""
        path = self.write(temp_output_dir, self.MANIFEST.replace(old, new))
        result = run(f"kubectl apply -f {path}")
        assert result.is_error
        assert result.output.startswith("error: ")
        assert message in result.output
        assert not store.has_namespace("shop")

    def test_apply_rejects_scalar_document(self, run, store, temp_output_dir):
        """Test a document that is not a mapping is rejected"""
        path = self.write(temp_output_dir, self.MANIFEST + "---\njust a string\n")
        result = run(f"kubectl apply -f {path}")
        assert result.output == "error: error validating data: expected an object, got str"
        assert not store.has_namespace("shop")

    def test_apply_missing_file_is_a_note(self, run):
        """Test an absent file is not an error"""
        result = run("kubectl apply -f /does/not/exist.yaml")
        assert not result.is_error
        assert result.output.startswith("Note:")

    def test_apply_requires_filename(self, run):
        """Test -f is mandatory"""
        assert run("kubectl apply").is_error


class TestDescribe:
    """Test kubectl describe"""

    def test_describe_node(self, run):
        """Test node details"""
        output = run("kubectl describe node node-1").output
        assert output.startswith("Name:               node-1")
        assert "InternalIP:  192.168.1.10" in output
        assert "Non-terminated Pods:          (7 in total)" in output

    def test_describe_pod_searches_other_namespaces(self, run):
        """Test a pod outside the default namespace is found without -n"""
        output = run("kubectl describe pod coredns-5d78c9869d-7hqxm").output
        assert "Namespace:        kube-system" in output
        assert "pod-template-hash=5d78c9869d" in output

    def test_describe_pod_with_wrong_namespace(self, run):
        """Test -n restricts the lookup"""
        result = run("kubectl describe pod coredns-5d78c9869d-7hqxm -n default")
        assert result.output == 'Error from server (NotFound): pods "coredns-5d78c9869d-7hqxm" not found'

    def test_describe_deployment(self, run):
        """Test deployment details"""
        output = run("kubectl describe deployment nginx-deployment").output
        assert "Replicas:               2 desired | 2 updated | 2 total | 2 available | 0 unavailable" in output
        assert "Image:        nginx:1.25" in output

    def test_describe_service(self, run):
        """Test load balancer and node port lines"""
        output = run("kubectl describe svc nginx-service").output
        assert "LoadBalancer Ingress:     203.0.113.42" in output
        assert "NodePort:                 <unset>  30080/TCP" in output

    def test_describe_namespace(self, run):
        """Test namespace details"""
        assert "Status:       Active" in run("kubectl describe ns staging").output

    def test_describe_requires_name(self, run):
        """Test describe without a name"""
        assert run("kubectl describe pods").is_error


class TestInformational:
    """Test read-only verbs"""

    def test_version(self, run):
        """Test client and server versions"""
        output = run("kubectl version").output
        assert output.splitlines()[0] == "Client Version: v1.28.3"
        assert "Server Version: v1.28.3" in output
        assert "Server Version" not in run("kubectl version --client").output

    def test_cluster_info(self, run):
        """Test the control plane address"""
        assert "Kubernetes control plane is running at https://192.168.1.10:6443" in run("kubectl cluster-info").output

    def test_config(self, run):
        """Test config subcommands"""
        assert "server: https://192.168.1.10:6443" in run("kubectl config view").output
        assert run("kubectl config current-context").output == "kubernetes-admin@kubernetes"
        assert "kubernetes-admin@kubernetes" in run("kubectl config get-contexts").output

    def test_logs(self, run):
        """Test canned logs and --tail"""
        lines = run("kubectl logs redis-master-0").output.splitlines()
        assert len(lines) == 6
        assert lines[0].endswith("INFO Starting application...")
        assert len(run("kubectl logs redis-master-0 --tail 2").output.splitlines()) == 2
        assert len(run("kubectl logs redis-master-0 --tail 10").output.splitlines()) == 6
        assert run("kubectl logs redis-master-0 --tail 0").output == ""
        assert run("kubectl logs ghost").output == 'Error from server (NotFound): pods "ghost" not found'

    def test_exec_is_unsupported(self, run):
        """Test exec is reported as unsupported"""
        result = run("kubectl exec -it redis-master-0 -- sh")
        assert result.is_error
        assert result.output == "Error: Interactive commands are not supported in this simulator"

    def test_edit_is_a_note(self, run):
        """Test edit and patch only print a note"""
        result = run("kubectl edit deployment nginx-deployment")
        assert not result.is_error
        assert result.output.startswith("Note: edit")

    def test_help(self, run):
        """Test help output is not empty"""
        assert run("kubectl help").output
        assert run("kubectl").output == run("kubectl --help").output

    def test_unknown_verb(self, run):
        """Test unknown verbs"""
        result = run("kubectl frobnicate pods")
        assert result.is_error
        assert result.output == 'Error: unknown command "frobnicate" for "kubectl"'

    def test_k_alias(self, run):
        """Test the k shorthand"""
        assert run("k get nodes").output == run("kubectl get nodes").output
