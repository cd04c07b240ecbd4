from typing import Dict, List, NamedTuple, Optional

import kubesim.constants as const
from kubesim.models.app import CommandResult
from kubesim.models.cluster_components import Release
from kubesim.models.config import ConfigFile
from kubesim.models.custom_errors import InvalidArgumentError
from kubesim.models.install_rules import ChartRule, find_chart_rule
from kubesim.simulator.flags import parse_flags, split_positionals
from kubesim.simulator.formatter import Formatter
from kubesim.simulator.store import ResourceStore
from kubesim.templates.generator import render_template
from kubesim.utils.logger import get_logger
from kubesim.utils.output import format_deployed_time, format_helm_time

logger = get_logger(__name__)

HELM_OUTPUT_FORMATS = ("table", "json", "yaml")


class PlannedComponent(NamedTuple):
    namespace: str
    name: str
    replicas: int
    image: str


def chart_name_from_ref(chart_ref: str) -> str:
    """
    Strip the repository part from a chart reference.

    `bitnami/redis`, `oci://ghcr.io/org/charts/redis` and `redis` all
    name the chart `redis`.
    """
    return chart_ref.rstrip("/").split("/")[-1]


def component_namespace(release_namespace: str, suffix: str) -> str:
    if not suffix:
        return release_namespace
    return f"{release_namespace}-{suffix}"


class HelmSimulator:
    """
    Simulated `helm` client.

    Releases live in the resource store. Chart repositories are client
    state, so they are kept on this instance.
    """

    def __init__(self, store: ResourceStore, formatter: Formatter, config: ConfigFile):
        self.store = store
        self.formatter = formatter
        self.config = config
        self.repositories: Dict[str, str] = {}

    def handle(self, args: List[str]) -> CommandResult:
        if not args or args[0] in ("help", "--help", "-h"):
            return CommandResult.ok(render_template("helm_help.txt.j2"))

        subcommand, rest = args[0], args[1:]
        logger.debug("helm %s %s", subcommand, rest)
        if subcommand == "install":
            return self.install_command(rest)
        if subcommand in ("list", "ls"):
            return self.list_command(rest)
        if subcommand in ("uninstall", "un", "delete", "del"):
            return self.uninstall_command(rest)
        if subcommand == "repo":
            return self.repo_command(rest)
        if subcommand == "version":
            return self.version_command(rest)
        raise InvalidArgumentError(f'unknown command "{subcommand}" for "helm"')

    # install

    def install_command(self, args: List[str]) -> CommandResult:
        positionals = split_positionals(args)
        flags = parse_flags(args[len(positionals):])
        namespace = flags.get("namespace", "n", default=self.config.default_namespace)

        if not positionals and flags.get("generate-name", "g"):
            # `--generate-name CHART` parses CHART as the flag value
            positionals = [flags.get("generate-name", "g")]
        if flags.given("generate-name", "g") and len(positionals) == 1:
            chart_ref = positionals[0]
            release_name = f"{chart_name_from_ref(chart_ref)}-{self.store.rng.randint(1000000000, 2000000000)}"
        elif len(positionals) >= 2:
            release_name, chart_ref = positionals[0], positionals[1]
        elif len(positionals) == 1:
            raise InvalidArgumentError(
                "INSTALLATION FAILED: must either provide a name or specify --generate-name"
            )
        else:
            raise InvalidArgumentError('"helm install" requires at least 1 argument')

        release = self.install(
            release_name,
            chart_ref,
            namespace,
            create_namespace=flags.given("create-namespace"),
            version=flags.get("version"),
        )
        return CommandResult.ok(self._install_notes(release))

    def install(
        self,
        release_name: str,
        chart_ref: str,
        namespace: str,
        create_namespace: bool = False,
        version: Optional[str] = None,
    ) -> Release:
        """
        Install a chart as one store batch.

        Everything is validated before the first mutation: the repository
        of a `repo/chart` reference, the namespace and the release name.
        """
        if "/" in chart_ref and not chart_ref.startswith("oci://"):
            repo = chart_ref.split("/", 1)[0]
            if repo not in self.repositories:
                raise InvalidArgumentError(f"INSTALLATION FAILED: repo {repo} not found")
        if not create_namespace and not self.store.has_namespace(namespace):
            raise InvalidArgumentError(
                f'INSTALLATION FAILED: create: failed to create: namespaces "{namespace}" not found'
            )
        if self.store.find_release(release_name, namespace) is not None:
            raise InvalidArgumentError("INSTALLATION FAILED: cannot re-use a name that is still in use")

        chart_name = chart_name_from_ref(chart_ref)
        rule = find_chart_rule(chart_name)
        if rule is None:
            logger.debug("No chart rule for %s, recording the release only", chart_name)
        app_version = rule.app_version if rule and rule.app_version else version or const.DEFAULT_CHART_VERSION

        created = []
        with self.store.batch():
            self.store.ensure_namespace(namespace)
            for component in self._plan_components(rule, namespace, chart_name, app_version):
                self.store.ensure_namespace(component.namespace)
                if self.store.find_deployment(component.name, component.namespace) is not None:
                    logger.debug(
                        "Deployment %s/%s already exists, sharing it",
                        component.namespace,
                        component.name,
                    )
                    continue
                self.store.create_deployment(
                    component.name, component.namespace, component.image, component.replicas
                )
                created.append(f"{component.namespace}/{component.name}")
            if rule is not None and rule.install_crds:
                self.store.register_crds(
                    ns.name
                    for ns in self.store.list_namespaces()
                    if ns.name not in const.SYSTEM_NAMESPACES
                )
            release = self.store.add_release(
                Release(
                    name=release_name,
                    namespace=namespace,
                    updated=format_helm_time(self.store.now()),
                    chart=f"{chart_name}-{version or const.DEFAULT_CHART_VERSION}",
                    app_version=app_version,
                    deployments=created,
                )
            )
        logger.debug("Installed release %s/%s from %s", namespace, release_name, chart_ref)
        return release

    @staticmethod
    def _plan_components(
        rule: Optional[ChartRule], namespace: str, chart_name: str, app_version: str
    ) -> List[PlannedComponent]:
        if rule is None:
            return []
        return [
            PlannedComponent(
                namespace=component_namespace(namespace, component.namespace_suffix),
                name=component.name,
                replicas=component.replicas,
                image=component.image or f"{chart_name}:{app_version}",
            )
            for component in rule.components
        ]

    def _install_notes(self, release: Release) -> str:
        lines = [
            f"NAME: {release.name}",
            f"LAST DEPLOYED: {format_deployed_time(self.store.now())}",
            f"NAMESPACE: {release.namespace}",
            f"STATUS: {release.status}",
            f"REVISION: {release.revision}",
            "TEST SUITE: None",
            "NOTES:",
        ]
        chart_name = release.chart.rsplit("-", 1)[0]
        components = self._plan_components(
            find_chart_rule(chart_name), release.namespace, chart_name, release.app_version
        )
        if components:
            lines.append(f"{chart_name} has been installed. Deployed components:")
            for component in components:
                lines.append(f"  - deployment/{component.name} in {component.namespace}")
        else:
            lines.append(f"{chart_name} has been installed.")
        return "\n".join(lines)

    # list

    def list_command(self, args: List[str]) -> CommandResult:
        flags = parse_flags(args)
        output = flags.get("output", "o", default="table")
        if output not in HELM_OUTPUT_FORMATS:
            raise InvalidArgumentError(
                f'invalid argument "{output}" for "-o, --output" flag: invalid format type'
            )

        if flags.given("all-namespaces", "A"):
            releases = self.store.list_releases()
        else:
            releases = self.store.list_releases(
                flags.get("namespace", "n", default=self.config.default_namespace)
            )

        if output == "table":
            return CommandResult.ok(self.formatter.render("releases", releases))
        return CommandResult.ok(
            self.formatter.encode(
                [
                    {
                        "name": r.name,
                        "namespace": r.namespace,
                        "revision": r.revision,
                        "updated": r.updated,
                        "status": r.status,
                        "chart": r.chart,
                        "app_version": r.app_version,
                    }
                    for r in releases
                ],
                output,
            )
        )

    # uninstall

    def uninstall_command(self, args: List[str]) -> CommandResult:
        positionals = split_positionals(args)
        if not positionals:
            raise InvalidArgumentError('"helm uninstall" requires at least 1 argument')
        flags = parse_flags(args[len(positionals):])
        namespace = flags.get("namespace", "n", default=self.config.default_namespace)

        output = []
        for name in positionals:
            self.uninstall(name, namespace)
            output.append(f'release "{name}" uninstalled')
        return CommandResult.ok("\n".join(output))

    def uninstall(self, release_name: str, namespace: str) -> Release:
        """
        Remove a release and the deployments it created.

        Deployments that already existed at install time are shared and stay, as do CRDs.
        """
        release = self.store.find_release(release_name, namespace)
        if release is None:
            raise InvalidArgumentError(f"uninstall: Release not loaded: {release_name}: release: not found")

        with self.store.batch():
            for key in release.deployments:
                deployment_namespace, name = key.split("/", 1)
                if self.store.find_deployment(name, deployment_namespace) is not None:
                    self.store.delete_deployment(name, deployment_namespace)
            self.store.remove_release(release_name, namespace)
        logger.debug("Uninstalled release %s/%s", namespace, release_name)
        return release

    # repo

    def repo_command(self, args: List[str]) -> CommandResult:
        if not args:
            raise InvalidArgumentError('"helm repo" requires a subcommand: add, list, remove, update')
        subcommand, rest = args[0], split_positionals(args[1:])

        if subcommand == "add":
            if len(rest) < 2:
                raise InvalidArgumentError('"helm repo add" requires 2 arguments')
            name, url = rest[0], rest[1]
            if self.repositories.get(name) == url:
                return CommandResult.ok(f'"{name}" already exists with the same configuration, skipping')
            if name in self.repositories:
                raise InvalidArgumentError(
                    f'repository name ({name}) already exists, please specify a different name'
                )
            self.repositories[name] = url
            return CommandResult.ok(f'"{name}" has been added to your repositories')

        if subcommand in ("list", "ls"):
            if not self.repositories:
                raise InvalidArgumentError("no repositories to show")
            width = max(len("NAME"), *(len(n) for n in self.repositories))
            lines = [f"{'NAME'.ljust(width)}\tURL"]
            lines += [f"{n.ljust(width)}\t{u}" for n, u in self.repositories.items()]
            return CommandResult.ok("\n".join(lines))

        if subcommand in ("update", "up"):
            if not self.repositories:
                raise InvalidArgumentError("no repositories found. You must add one before updating")
            lines = ["Hang tight while we grab the latest from your chart repositories..."]
            lines += [
                f'...Successfully got an update from the "{n}" chart repository'
                for n in self.repositories
            ]
            lines.append("Update Complete. ⎈Happy Helming!⎈")
            return CommandResult.ok("\n".join(lines))

        if subcommand in ("remove", "rm"):
            if not rest:
                raise InvalidArgumentError('"helm repo remove" requires at least 1 argument')
            for name in rest:
                if name not in self.repositories:
                    raise InvalidArgumentError(f'no repo named "{name}" found')
            for name in rest:
                del self.repositories[name]
            return CommandResult.ok(
                "\n".join(f'"{n}" has been removed from your repositories' for n in rest)
            )

        raise InvalidArgumentError(f'unknown command "{subcommand}" for "helm repo"')

    # version

    def version_command(self, args: List[str]) -> CommandResult:
        if parse_flags(args).given("short"):
            return CommandResult.ok(f"{const.HELM_VERSION}+g{const.HELM_GIT_COMMIT[:7]}")
        return CommandResult.ok(
            f'version.BuildInfo{{Version:"{const.HELM_VERSION}", GitCommit:"{const.HELM_GIT_COMMIT}", '
            f'GitTreeState:"clean", GoVersion:"{const.GO_VERSION}"}}'
        )
