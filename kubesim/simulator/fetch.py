from typing import List, Optional, Tuple

from kubesim.models.app import CommandResult
from kubesim.models.custom_errors import InvalidArgumentError
from kubesim.models.install_rules import ScriptRule, StepAction, find_script_rule
from kubesim.simulator.helm import HelmSimulator
from kubesim.simulator.store import ResourceStore
from kubesim.utils.logger import get_logger

logger = get_logger(__name__)

# Flags of curl and wget whose next token is a value, not the URL
VALUE_FLAGS = {
    "-o", "--output",
    "-O", "--output-document",
    "-H", "--header",
    "-X", "--request",
    "-d", "--data",
    "-u", "--user",
    "-A", "--user-agent",
    "-P", "--directory-prefix",
}

OUTPUT_FLAGS = ("-o", "--output", "--output-document")

MISSING_URL = {
    "curl": "curl: no URL specified!",
    "wget": "wget: missing URL",
}


def parse_fetch_args(args: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Pick the URL and the output file out of curl/wget arguments.

    Returns (url, output_file). `wget -O -` writes to stdout, so it is not
    an output file.
    """
    url = None
    output_file = None
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in VALUE_FLAGS:
            value = args[i + 1] if i + 1 < len(args) else None
            if (arg in OUTPUT_FLAGS or arg == "-O") and value not in (None, "-"):
                output_file = value
            i += 2
            continue
        if not arg.startswith("-") and url is None:
            url = arg
        i += 1
    return url, output_file


class FetchSimulator:
    """
    Simulated `curl`/`wget`, optionally piped into a shell.

    Known URLs map to scripted installers from SCRIPT_RULES. Their steps run
    against the store only when the download is piped to `bash` or `sh`.
    """

    def __init__(self, store: ResourceStore, helm: HelmSimulator):
        self.store = store
        self.helm = helm

    def handle(self, args: List[str], piped_to_shell: bool = False) -> CommandResult:
        tool = args[0]
        url, output_file = parse_fetch_args(args[1:])
        if url is None:
            raise InvalidArgumentError(MISSING_URL.get(tool, f"{tool}: missing URL"), prefix="")

        rule = find_script_rule(url)
        logger.debug("%s %s (script: %s, piped: %s)", tool, url, rule.pattern if rule else None, piped_to_shell)
        if rule is None:
            if piped_to_shell:
                return CommandResult.ok(f"Downloaded and executed {url} (simulated, no cluster changes)")
            return CommandResult.ok(f"[simulated response from {url}]")
        if piped_to_shell:
            return CommandResult.ok(self.run_script(rule))
        if output_file:
            return CommandResult.ok(f"'{output_file}' saved")
        return CommandResult.ok(self.preview(rule, url))

    @staticmethod
    def preview(rule: ScriptRule, url: str) -> str:
        lines = [
            "#!/usr/bin/env bash",
            f"# {rule.description}",
            f"# Source: {url}",
            "set -euo pipefail",
            "",
        ]
        lines += [f'echo "{step.message}"' for step in rule.steps if step.message]
        return "\n".join(lines)

    def run_script(self, rule: ScriptRule) -> str:
        """
        Apply the steps of a script as one store batch. Steps are idempotent,
        so running a script twice leaves a single copy of what it installs.
        """
        output = []
        with self.store.batch():
            for step in rule.steps:
                if step.action == StepAction.create_namespace:
                    created = self.store.ensure_namespace(step.namespace)
                    output.append(f"namespace/{step.namespace} {'created' if created else 'unchanged'}")
                    continue

                if step.action == StepAction.deploy:
                    self.store.ensure_namespace(step.namespace)
                    if self.store.find_deployment(step.name, step.namespace) is not None:
                        output.append(f"deployment.apps/{step.name} unchanged")
                        continue
                    self.store.create_deployment(step.name, step.namespace, step.image, step.replicas)
                elif step.action == StepAction.per_node_pod:
                    self.store.ensure_namespace(step.namespace)
                    if any(p.name.startswith(f"{step.name}-") for p in self.store.list_pods(step.namespace)):
                        output.append(f"daemonset.apps/{step.name} unchanged")
                        continue
                    self.store.add_pod_per_node(step.name, step.namespace, step.image)
                elif step.action == StepAction.nodes_ready:
                    self.store.set_all_nodes_ready()
                elif step.action == StepAction.helm_install:
                    if self.store.find_release(step.name, step.namespace) is not None:
                        output.append(f"Release {step.name} is already installed, skipping")
                        continue
                    self.helm.install(step.name, step.chart, step.namespace, create_namespace=True)

                if step.message:
                    output.append(step.message)
        logger.debug("Ran script %s (%d steps)", rule.pattern, len(rule.steps))
        return "\n".join(output)
