import os

import jinja2

from kubesim.utils.output import format_age, format_timestamp

# Get the directory of the current module
current_dir = os.path.dirname(__file__)

environment = jinja2.Environment(
    loader=jinja2.FileSystemLoader(current_dir),
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=jinja2.StrictUndefined,
)

environment.filters["ljust"] = lambda value, width: str(value).ljust(width)
environment.filters["timestamp"] = format_timestamp
environment.globals["format_age"] = format_age


def render_template(name: str, **context) -> str:
    """Render a text template shipped next to this module, without the trailing newline."""
    template = environment.get_template(name)
    return template.render(**context).rstrip("\n")


def render_describe(kind: str, now: int, **context) -> str:
    """Render `kubectl describe` output for a kind from `describe_<kind>.txt.j2`."""
    return render_template(f"describe_{kind}.txt.j2", now=now, **context)
