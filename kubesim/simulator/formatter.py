import json
import yaml
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel

from kubesim.models.cluster_components import CustomResource, K8sObject
from kubesim.models.custom_errors import InvalidArgumentError
from kubesim.utils.output import format_age, format_timestamp

OUTPUT_FORMATS = ("table", "wide", "json", "yaml")


class ColumnSpec(NamedTuple):
    header: str
    width: int  # minimum width; ignored for the last column
    value: Callable[[Any, int], str]  # (item, now) -> cell text


def _age(item, now: int) -> str:
    if isinstance(item, K8sObject):
        return format_age(item.creation_timestamp, now)
    return format_age(item.metadata.creation_timestamp, now)


def _attr(name: str, default: str = "<none>") -> Callable[[Any, int], str]:
    def getter(item, now):
        value = getattr(item, name)
        return default if value is None else str(value)

    return getter


def _fixed(text: str) -> Callable[[Any, int], str]:
    return lambda item, now: text


def _namespace(item, now: int) -> str:
    if isinstance(item, CustomResource):
        return item.metadata.namespace
    return item.namespace


NAMESPACE_COLUMN = ColumnSpec("NAMESPACE", 13, _namespace)

COLUMNS: Dict[str, Dict[str, List[ColumnSpec]]] = {
    "nodes": {
        "table": [
            ColumnSpec("NAME", 8, _attr("name")),
            ColumnSpec("STATUS", 8, _attr("status")),
            ColumnSpec("ROLES", 15, _attr("roles")),
            ColumnSpec("AGE", 5, _age),
            ColumnSpec("VERSION", 0, _attr("version")),
        ],
        "wide": [
            ColumnSpec("NAME", 8, _attr("name")),
            ColumnSpec("STATUS", 8, _attr("status")),
            ColumnSpec("ROLES", 15, _attr("roles")),
            ColumnSpec("AGE", 5, _age),
            ColumnSpec("VERSION", 10, _attr("version")),
            ColumnSpec("INTERNAL-IP", 15, _attr("internal_ip")),
            ColumnSpec("EXTERNAL-IP", 13, _fixed("<none>")),
            ColumnSpec("OS-IMAGE", 20, _attr("os_image")),
            ColumnSpec("KERNEL-VERSION", 19, _attr("kernel_version")),
            ColumnSpec("CONTAINER-RUNTIME", 0, _attr("container_runtime")),
        ],
    },
    "pods": {
        "table": [
            ColumnSpec("NAME", 41, _attr("name")),
            ColumnSpec("READY", 7, _attr("ready")),
            ColumnSpec("STATUS", 9, _attr("status")),
            ColumnSpec("RESTARTS", 10, _attr("restarts")),
            ColumnSpec("AGE", 0, _age),
        ],
        "wide": [
            ColumnSpec("NAME", 41, _attr("name")),
            ColumnSpec("READY", 7, _attr("ready")),
            ColumnSpec("STATUS", 9, _attr("status")),
            ColumnSpec("RESTARTS", 10, _attr("restarts")),
            ColumnSpec("AGE", 5, _age),
            ColumnSpec("IP", 14, _attr("ip")),
            ColumnSpec("NODE", 10, _attr("node")),
            ColumnSpec("NOMINATED NODE", 16, _fixed("<none>")),
            ColumnSpec("READINESS GATES", 0, _fixed("<none>")),
        ],
    },
    "deployments": {
        "table": [
            ColumnSpec("NAME", 19, _attr("name")),
            ColumnSpec("READY", 7, _attr("ready")),
            ColumnSpec("UP-TO-DATE", 12, _attr("up_to_date")),
            ColumnSpec("AVAILABLE", 11, _attr("available")),
            ColumnSpec("AGE", 0, _age),
        ],
        "wide": [
            ColumnSpec("NAME", 19, _attr("name")),
            ColumnSpec("READY", 7, _attr("ready")),
            ColumnSpec("UP-TO-DATE", 12, _attr("up_to_date")),
            ColumnSpec("AVAILABLE", 11, _attr("available")),
            ColumnSpec("AGE", 5, _age),
            ColumnSpec("IMAGES", 0, _attr("image")),
        ],
    },
    "services": {
        "table": [
            ColumnSpec("NAME", 17, _attr("name")),
            ColumnSpec("TYPE", 14, _attr("type")),
            ColumnSpec("CLUSTER-IP", 15, _attr("cluster_ip")),
            ColumnSpec("EXTERNAL-IP", 15, _attr("external_ip")),
            ColumnSpec("PORT(S)", 28, _attr("ports")),
            ColumnSpec("AGE", 0, _age),
        ],
    },
    "namespaces": {
        "table": [
            ColumnSpec("NAME", 18, _attr("name")),
            ColumnSpec("STATUS", 8, _attr("status")),
            ColumnSpec("AGE", 0, _age),
        ],
    },
    "crds": {
        "table": [
            ColumnSpec("NAME", 40, _attr("name")),
            ColumnSpec("CREATED AT", 0, lambda crd, now: format_timestamp(crd.creation_timestamp)),
        ],
    },
    "customresources": {
        "table": [
            ColumnSpec("NAME", 30, lambda r, now: r.metadata.name),
            ColumnSpec("AGE", 0, _age),
        ],
    },
    "releases": {
        "table": [
            ColumnSpec("NAME", 26, _attr("name")),
            ColumnSpec("NAMESPACE", 26, _attr("namespace")),
            ColumnSpec("REVISION", 9, _attr("revision")),
            ColumnSpec("UPDATED", 40, _attr("updated")),
            ColumnSpec("STATUS", 9, _attr("status")),
            ColumnSpec("CHART", 34, _attr("chart")),
            ColumnSpec("APP VERSION", 0, _attr("app_version")),
        ],
    },
}

# `get all` sections: the name column carries the resource prefix
ALL_SECTIONS = [
    ("pods", "pod/", 45),
    ("deployments", "deployment.apps/", 35),
    ("services", "service/", 25),
]


def render_row(columns: Sequence[ColumnSpec], cells: Sequence[str]) -> str:
    """
    Left-justify every cell but the last to its column width and join the
    cells with one space.
    """
    parts = [cell.ljust(column.width) for column, cell in zip(columns[:-1], cells[:-1])]
    parts.append(cells[-1])
    return " ".join(parts)


def render_table(columns: Sequence[ColumnSpec], items: Sequence[Any], now: int) -> str:
    lines = [render_row(columns, [c.header for c in columns])]
    for item in items:
        lines.append(render_row(columns, [c.value(item, now) for c in columns]))
    return "\n".join(lines)


class IndentedDumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences under their parent key, as kubectl does."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def to_yaml(obj: Any) -> str:
    return yaml.dump(
        obj,
        Dumper=IndentedDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )


def to_json(obj: Any) -> str:
    return json.dumps(obj, indent=2)


class Formatter:
    """
    Renders store objects as table, wide table, JSON or YAML text.

    Whether a NAMESPACE column is prepended is decided by the caller.
    """

    def __init__(self, clock: Callable[[], int]):
        self.clock = clock

    def serialize(self, item: BaseModel) -> Dict[str, Any]:
        data = item.model_dump(by_alias=True, mode="json")
        if isinstance(item, K8sObject):
            data["age"] = format_age(item.creation_timestamp, self.clock())
        return data

    def columns(self, kind: str, output: str, with_namespace: bool = False) -> List[ColumnSpec]:
        layouts = COLUMNS[kind]
        columns = layouts.get(output, layouts["table"])
        if with_namespace:
            return [NAMESPACE_COLUMN] + columns
        return columns

    def render(
        self,
        kind: str,
        items: Sequence[BaseModel],
        output: str = "table",
        with_namespace: bool = False,
        empty_message: Optional[str] = None,
    ) -> str:
        """Render a collection. JSON and YAML wrap the items in `{"items": [...]}`."""
        check_output_format(output)
        if output in ("json", "yaml"):
            return self.encode({"items": [self.serialize(i) for i in items]}, output)
        if not items and empty_message is not None:
            return empty_message
        return render_table(self.columns(kind, output, with_namespace), items, self.clock())

    def render_one(self, kind: str, item: BaseModel, output: str = "table", with_namespace: bool = False) -> str:
        """Render a single object, unwrapped for JSON and YAML."""
        check_output_format(output)
        if output in ("json", "yaml"):
            return self.encode(self.serialize(item), output)
        return render_table(self.columns(kind, output, with_namespace), [item], self.clock())

    def encode(self, data: Any, output: str) -> str:
        if output == "json":
            return to_json(data)
        return to_yaml(data).rstrip("\n")

    def render_all(self, pods, deployments, services) -> str:
        """`get all` listing: one section per kind, names prefixed by kind."""
        now = self.clock()
        sections = []
        for (kind, prefix, width), items in zip(ALL_SECTIONS, (pods, deployments, services)):
            if not items:
                continue
            columns = list(COLUMNS[kind]["table"])
            name_column = columns[0]
            columns[0] = ColumnSpec(
                "NAME", width, lambda item, now, p=prefix, c=name_column: p + c.value(item, now)
            )
            sections.append(render_table(columns, items, now))
        return "\n\n".join(sections)


def check_output_format(output: str):
    if output not in OUTPUT_FORMATS:
        raise InvalidArgumentError(
            f'unable to match a printer suitable for the output format "{output}", '
            f'allowed formats are: json,yaml,wide',
            prefix="error",
        )
