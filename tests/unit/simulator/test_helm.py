"""
helm simulator tests
"""

import json
import re

import pytest

from kubesim.simulator.helm import chart_name_from_ref, component_namespace

CONTROL_PLANE_CHART = "oci://ghcr.io/openchoreo/helm-charts/openchoreo-control-plane"


@pytest.fixture
def with_bitnami(run):
    """Simulator with the bitnami repository added"""
    run("helm repo add bitnami https://charts.bitnami.com/bitnami")
    return run


class TestChartReferences:
    """Test chart reference helpers"""

    @pytest.mark.parametrize(
        "ref", ["redis", "bitnami/redis", "oci://registry-1.docker.io/bitnamicharts/redis"]
    )
    def test_chart_name_from_ref(self, ref):
        assert chart_name_from_ref(ref) == "redis"

    def test_component_namespace(self):
        assert component_namespace("dp", "") == "dp"
        assert component_namespace("dp", "gateway") == "dp-gateway"


class TestInstall:
    """Test helm install"""

    def test_install_creates_components(self, with_bitnami, store):
        """Test chart rule components become deployments"""
        result = with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        assert not result.is_error
        lines = result.output.splitlines()
        assert lines[0] == "NAME: cache"
        assert lines[1] == "LAST DEPLOYED: Tue Nov 14 22:13:20 2023"
        assert "NAMESPACE: cache" in lines
        assert "STATUS: deployed" in lines
        assert "  - deployment/redis-master in cache" in lines

        deployment = store.get_deployment("redis-master", "cache")
        assert deployment.image == "redis:7.2.4"
        assert len(store.owned_pods(deployment)) == 1

    def test_release_record(self, with_bitnami, store):
        """Test the stored release"""
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace --version 18.1.0")
        release = store.find_release("cache", "cache")
        assert release.chart == "redis-18.1.0"
        assert release.app_version == "7.2.4"
        assert release.revision == "1"
        assert release.updated == "2023-11-14 22:13:20.000000000 +0000 UTC"

    def test_duplicate_release(self, with_bitnami):
        """Test release names are unique per namespace"""
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        result = with_bitnami("helm install cache bitnami/redis -n cache")
        assert result.is_error
        assert result.output == "Error: INSTALLATION FAILED: cannot re-use a name that is still in use"

    def test_namespace_must_exist(self, with_bitnami, store):
        """Test install without --create-namespace into a missing namespace"""
        result = with_bitnami("helm install cache bitnami/redis -n nope")
        assert result.output == 'Error: INSTALLATION FAILED: create: failed to create: namespaces "nope" not found'
        assert not store.has_namespace("nope")

    def test_unknown_repository(self, run):
        """Test repo/chart references need the repo"""
        result = run("helm install cache bitnami/redis")
        assert result.is_error
        assert result.output == "Error: INSTALLATION FAILED: repo bitnami not found"

    def test_generate_name(self, with_bitnami, store):
        """Test --generate-name picks the release name"""
        result = with_bitnami("helm install bitnami/redis --generate-name -n cache --create-namespace")
        assert re.match(r"^NAME: redis-\d{10}$", result.output.splitlines()[0])
        assert len(store.list_releases("cache")) == 1

    def test_missing_release_name(self, with_bitnami):
        """Test a single argument without --generate-name"""
        result = with_bitnami("helm install bitnami/redis")
        assert result.output == "Error: INSTALLATION FAILED: must either provide a name or specify --generate-name"

    def test_unknown_chart_records_release_only(self, run, store):
        """Test charts without a rule only record the release"""
        deployments = len(store.list_deployments())
        assert not run("helm install tools oci://example.com/charts/toolbox").is_error
        assert len(store.list_deployments()) == deployments
        assert store.find_release("tools", "default").chart == "toolbox-0.1.0"

    def test_suffix_namespace(self, run, store):
        """Test components with a namespace suffix"""
        run("helm install dp oci://ghcr.io/openchoreo/helm-charts/openchoreo-data-plane -n choreo-dp --create-namespace")
        assert store.find_deployment("envoy-gateway", "choreo-dp-gateway") is not None
        assert store.find_deployment("cluster-agent", "choreo-dp") is not None

    def test_control_plane_registers_crds(self, run, store):
        """Test the control plane chart installs CRDs and samples"""
        run(f"helm install cp {CONTROL_PLANE_CHART} -n openchoreo --create-namespace")
        assert len(store.list_crds()) == 9
        assert "organizations.choreo.dev" in run("kubectl get crds").output
        assert "web-app" in run("kubectl get projects").output
        assert "web-app" in run("kubectl get projects -n openchoreo").output
        assert "acme-corp" in run("kubectl get organizations").output
        assert run("kubectl get projects -n kube-system").output == "No resources found in kube-system namespace."
        result = run("kubectl get project ghost")
        assert result.output == 'Error from server (NotFound): projects.choreo.dev "ghost" not found'

    def test_custom_resources_all_namespaces(self, run):
        """Test -A on a namespaced custom resource adds the NAMESPACE column"""
        run(f"helm install cp {CONTROL_PLANE_CHART} -n openchoreo --create-namespace")
        lines = run("kubectl get components -A").output.splitlines()
        assert lines[0].startswith("NAMESPACE")
        assert any(line.startswith("production") for line in lines)

    def test_install_notifies_once(self, run, observer):
        """Test a whole install is one state change"""
        run(f"helm install cp {CONTROL_PLANE_CHART} -n openchoreo --create-namespace")
        assert observer.call_count == 1


class TestList:
    """Test helm list"""

    def test_empty_list_prints_header(self, run):
        """Test the header is printed without releases"""
        assert run("helm list").output.startswith("NAME")
        assert len(run("helm ls").output.splitlines()) == 1

    def test_list_columns(self, with_bitnami):
        """Test release table column offsets"""
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        lines = with_bitnami("helm list -n cache").output.splitlines()
        header = lines[0]
        assert [header.index(h) for h in ("NAMESPACE", "REVISION", "UPDATED", "STATUS", "CHART", "APP VERSION")] == [
            27, 54, 64, 105, 115, 150,
        ]
        assert lines[1][115:127] == "redis-0.1.0 "
        assert lines[1].endswith("7.2.4")

    def test_list_all_namespaces_json(self, with_bitnami):
        """Test -A with JSON output"""
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        with_bitnami("helm install other bitnami/redis -n other --create-namespace")
        data = json.loads(with_bitnami("helm list -A -o json").output)
        assert [r["name"] for r in data] == ["cache", "other"]
        assert data[0]["app_version"] == "7.2.4"

    def test_invalid_output(self, run):
        """Test unsupported output formats"""
        assert run("helm list -o wide").is_error


class TestUninstall:
    """Test helm uninstall"""

    def test_uninstall_removes_components(self, with_bitnami, store):
        """Test components are removed and the release is gone"""
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        assert with_bitnami("helm uninstall cache -n cache").output == 'release "cache" uninstalled'
        assert store.find_deployment("redis-master", "cache") is None
        assert store.find_release("cache", "cache") is None
        assert store.has_namespace("cache")

    def test_uninstall_keeps_shared_deployments(self, with_bitnami, store):
        """Test deployments that existed before install survive uninstall"""
        with_bitnami("helm install my-redis bitnami/redis")
        release = store.find_release("my-redis", "default")
        assert release.deployments == []
        with_bitnami("helm uninstall my-redis")
        assert store.find_deployment("redis-master", "default") is not None
        assert [p.name for p in store.list_pods("default") if p.name.startswith("redis-master")] == ["redis-master-0"]

    def test_release_records_created_deployments(self, with_bitnami, store):
        with_bitnami("helm install cache bitnami/redis -n cache --create-namespace")
        assert store.find_release("cache", "cache").deployments == ["cache/redis-master"]

    def test_uninstall_missing_release(self, run):
        """Test the not found error"""
        result = run("helm uninstall ghost")
        assert result.is_error
        assert result.output == "Error: uninstall: Release not loaded: ghost: release: not found"


class TestRepoAndVersion:
    """Test repo management, version and help"""

    def test_repo_add_twice(self, run):
        """Test adding the same repo twice"""
        assert run("helm repo add bitnami https://charts.bitnami.com/bitnami").output == (
            '"bitnami" has been added to your repositories'
        )
        assert run("helm repo add bitnami https://charts.bitnami.com/bitnami").output == (
            '"bitnami" already exists with the same configuration, skipping'
        )
        assert run("helm repo add bitnami https://example.com").is_error

    def test_repo_update_and_list(self, with_bitnami):
        """Test update and list after add"""
        output = with_bitnami("helm repo update").output
        assert '...Successfully got an update from the "bitnami" chart repository' in output
        assert "https://charts.bitnami.com/bitnami" in with_bitnami("helm repo list").output

    def test_repo_update_without_repos(self, run):
        """Test update needs a repository"""
        assert run("helm repo update").is_error

    def test_repo_remove(self, with_bitnami):
        """Test removing a repository"""
        assert with_bitnami("helm repo remove bitnami").output == '"bitnami" has been removed from your repositories'
        assert with_bitnami("helm repo remove bitnami").is_error

    def test_version(self, run):
        """Test full and short versions"""
        assert run("helm version").output.startswith('version.BuildInfo{Version:"v3.14.0"')
        assert run("helm version --short").output == "v3.14.0+g3fc9f4b"

    def test_help_and_unknown(self, run):
        """Test help and unknown subcommands"""
        assert "Usage:" in run("helm").output
        result = run("helm frob")
        assert result.is_error
        assert result.output == 'Error: unknown command "frob" for "helm"'
