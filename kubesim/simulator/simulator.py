import re
from typing import Callable, List, Optional

from kubesim.models.app import CommandResult
from kubesim.models.cluster_components import ClusterState
from kubesim.models.config import ConfigFile
from kubesim.models.custom_errors import InvalidArgumentError, SimulatorError, UnsupportedError
from kubesim.simulator.fetch import FetchSimulator
from kubesim.simulator.flags import parse_flags
from kubesim.simulator.formatter import Formatter
from kubesim.simulator.helm import HelmSimulator
from kubesim.simulator.notifier import ChangeNotifier
from kubesim.simulator.router import KubectlRouter
from kubesim.simulator.store import ResourceStore
from kubesim.utils import split_command, split_pipeline
from kubesim.utils.logger import get_logger
from kubesim.utils.output import now_ms
from kubesim.utils.rng import RNG

logger = get_logger(__name__)

KUBECTL_COMMANDS = ("kubectl", "k")
FETCH_COMMANDS = ("curl", "wget")
SHELL_COMMANDS = ("bash", "sh")
# Shell builtins and file commands accepted without effect
INERT_COMMANDS = ("ls", "cd", "mv", "cp", "clear")


class Simulator:
    """
    One simulated terminal session over an in-memory cluster.

    `execute_command` never raises: every failure comes back as a
    CommandResult with `is_error` set.
    """

    def __init__(
        self,
        config: Optional[ConfigFile] = None,
        rng: Optional[RNG] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config or ConfigFile()
        self.notifier = ChangeNotifier()
        self.store = ResourceStore(
            rng=rng or RNG(self.config.seed),
            clock=clock,
            notifier=self.notifier,
            kubernetes_version=self.config.kubernetes_version,
            nodes_ready=self.config.nodes_ready,
        )
        self.formatter = Formatter(clock)
        self.kubectl = KubectlRouter(self.store, self.formatter, self.config)
        self.helm = HelmSimulator(self.store, self.formatter, self.config)
        self.fetch = FetchSimulator(self.store, self.helm)

    def execute_command(self, line: str) -> CommandResult:
        line = line.strip()
        if not line:
            return CommandResult.ok()
        try:
            return self._run_pipeline(split_pipeline(line))
        except SimulatorError as err:
            logger.debug("Command %r failed: %s", line, err)
            return CommandResult.error(str(err))
        except Exception as err:
            logger.exception("Unexpected failure while running %r", line)
            return CommandResult.error(f"Error: {err}")

    def on_state_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Subscribe to state changes. Returns the unsubscribe function."""
        return self.notifier.subscribe(callback)

    def get_state(self) -> ClusterState:
        return self.store.snapshot()

    def _run_pipeline(self, segments: List[str]) -> CommandResult:
        tokens = split_command(segments[0])
        if not tokens:
            raise InvalidArgumentError("syntax error near unexpected token `|'", prefix="bash")

        stages = segments[1:]
        if tokens[0] in FETCH_COMMANDS:
            piped_to_shell = bool(stages) and split_command(stages[0])[:1] in (["bash"], ["sh"])
            result = self.fetch.handle(tokens, piped_to_shell)
            if piped_to_shell:
                stages = stages[1:]
        else:
            result = self._dispatch(tokens)

        for stage in stages:
            if result.is_error:
                break
            result = CommandResult.ok(self._filter(split_command(stage), result.output))
        return result

    def _dispatch(self, tokens: List[str]) -> CommandResult:
        command, args = tokens[0], tokens[1:]
        if command in KUBECTL_COMMANDS:
            return self.kubectl.handle(args)
        if command == "helm":
            return self.helm.handle(args)
        if command == "pwd":
            return CommandResult.ok(self.config.home_dir)
        if command in INERT_COMMANDS:
            return CommandResult.ok()
        return CommandResult.error(f"bash: {command}: command not found")

    def _filter(self, tokens: List[str], text: str) -> str:
        """Apply one text filter stage (grep, head, tail, wc) to the previous output."""
        if not tokens:
            raise InvalidArgumentError("syntax error near unexpected token `|'", prefix="bash")
        command, args = tokens[0], tokens[1:]
        lines = text.splitlines()

        if command == "grep":
            positionals = [a for a in args if not a.startswith("-")]
            if not positionals:
                raise InvalidArgumentError("Usage: grep [OPTION]... PATTERNS [FILE]...", prefix="")
            switches = "".join(a.lstrip("-") for a in args if a.startswith("-"))
            try:
                pattern = re.compile(positionals[0], re.IGNORECASE if "i" in switches else 0)
            except re.error as err:
                raise InvalidArgumentError(f"invalid pattern: {err}", prefix="grep")
            invert = "v" in switches
            return "\n".join(line for line in lines if bool(pattern.search(line)) != invert)

        if command in ("head", "tail"):
            count = self._line_count(args)
            if command == "head":
                return "\n".join(lines[:count])
            return "\n".join(lines[-count:] if count else [])

        if command == "wc":
            if "-l" not in args:
                raise UnsupportedError("only `wc -l` is supported in a pipeline")
            return str(len(lines))

        if command in SHELL_COMMANDS:
            raise UnsupportedError("only scripts downloaded with curl or wget can be piped to a shell")
        raise InvalidArgumentError(f"{command}: command not found", prefix="bash")

    @staticmethod
    def _line_count(args: List[str]) -> int:
        # head -n 5, head -5, head --lines=5
        for arg in args:
            if arg.startswith("-") and arg[1:].isdigit():
                return int(arg[1:])
        count = parse_flags(args).get_int("n", "lines")
        if count is None:
            return 10
        return max(count, 0)
