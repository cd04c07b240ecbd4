import os

import click
import yaml
from pydantic import ValidationError

from kubesim.models.app import CommandResult
from kubesim.models.config import ConfigFile
from kubesim.simulator.formatter import to_json, to_yaml
from kubesim.simulator.simulator import Simulator
from kubesim.utils.fs import env_is_truthy, read_config_from_file, save_data_to_file
from kubesim.utils.logger import get_logger, init_logger

EXIT_COMMANDS = ("exit", "quit", "logout")


def config_options(func):
    """Options shared by every command that builds a simulator."""
    func = click.option("-v", "--verbose", count=True, help="Increase verbosity of output.")(func)
    func = click.option("--output", "-o", help="Directory to save run.log in.", default=None)(func)
    func = click.option("--seed", "-s", type=int, help="Seed for generated names and addresses.", default=None)(func)
    func = click.option(
        "--param",
        "-p",
        multiple=True,
        help="Additional parameters for config file in key=value format.",
        default=[],
    )(func)
    func = click.option(
        "--config",
        "-c",
        help="Path to kubesim config file.",
        default=os.getenv("KUBESIM_CONFIG", None),
    )(func)
    return func


def load_config(config: str, param: list[str], seed: int = None) -> ConfigFile:
    logger = get_logger(__name__)

    if config and not os.path.exists(config):
        logger.error("Config file not found: %s", config)
        exit(1)

    try:
        parsed_config = read_config_from_file(config, param)
    except KeyError as err:
        logger.error("Unable to parse config file due to missing key: %s", err)
        exit(1)
    except ValidationError as err:
        logger.error("Unable to parse config file: %s", err)
        exit(1)
    except ValueError as err:
        logger.error("Invalid parameter, expected key=value: %s", err)
        exit(1)
    except yaml.YAMLError as err:
        logger.error("Unable to parse config file: %s", err)
        exit(1)

    if seed is not None:
        parsed_config.seed = seed
    logger.debug("Initialized config: %s", parsed_config.model_dump())
    return parsed_config


def echo_result(result: CommandResult):
    if not result.output:
        return
    if result.is_error:
        color = False if env_is_truthy("KUBESIM_NO_COLOR") else None
        click.secho(result.output, fg="red", err=True, color=color)
    else:
        click.echo(result.output)


@click.group(context_settings={"show_default": True})
def main():
    pass


@main.command(help="Start an interactive simulated terminal")
@config_options
def shell(config: str, param: list[str] = None, seed: int = None, output: str = None, verbose: int = 0):
    init_logger(output, verbose >= 1)
    parsed_config = load_config(config, param, seed)
    simulator = Simulator(parsed_config)

    click.echo("Simulated cluster ready. Type 'kubectl help' or 'helm help', 'exit' to leave.")
    while True:
        try:
            line = click.prompt(parsed_config.prompt, default="", show_default=False, prompt_suffix="")
        except click.exceptions.Abort:
            click.echo()
            break
        if line.strip() in EXIT_COMMANDS:
            break
        echo_result(simulator.execute_command(line))


@main.command(name="exec", help="Run command lines against a fresh simulated cluster")
@click.argument("lines", nargs=-1, required=True)
@config_options
def exec_lines(lines, config: str, param: list[str] = None, seed: int = None, output: str = None, verbose: int = 0):
    init_logger(output, verbose >= 1)
    parsed_config = load_config(config, param, seed)
    simulator = Simulator(parsed_config)

    result = CommandResult.ok()
    for line in lines:
        result = simulator.execute_command(line)
        echo_result(result)
    if result.is_error:
        exit(1)


@main.command(help="Print the initial state of the simulated cluster")
@click.option(
    "--format",
    "-f",
    help="Format of the state dump.",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="yaml",
)
@click.option("--save", help="Also write the state to this .json or .yaml file.", default=None)
@config_options
def state(format: str, save: str, config: str, param: list[str] = None, seed: int = None, output: str = None, verbose: int = 0):
    init_logger(output, verbose >= 1)
    logger = get_logger(__name__)
    parsed_config = load_config(config, param, seed)

    data = Simulator(parsed_config).get_state().model_dump(by_alias=True, mode="json")
    if format.lower() == "json":
        click.echo(to_json(data))
    else:
        click.echo(to_yaml(data).rstrip("\n"))

    if save:
        try:
            save_data_to_file(data, save)
        except ValueError as err:
            logger.error("%s", err)
            exit(1)
        logger.info("Saved cluster state to %s", save)
