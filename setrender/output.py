"""Reading multi-document YAML input and writing rendered resources."""

from __future__ import annotations

import sys
from typing import Any, Iterable, Mapping, TextIO

import yaml

_STR_TAG = "tag:yaml.org,2002:str"


class _Dumper(yaml.SafeDumper):
    """YAML dumper that double-quotes strings which would not read back as strings."""


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    style = None
    if value == "" or dumper.resolve(yaml.ScalarNode, value, (True, False)) != _STR_TAG:
        style = '"'
    return dumper.represent_scalar(_STR_TAG, value, style=style)


_Dumper.add_representer(str, _represent_str)


def split_documents(text: str) -> list[dict[str, Any]]:
    """Split text on "---" and decode each non-blank part as a resource."""
    documents = []
    for chunk in text.split("---"):
        if not chunk.strip():
            continue
        try:
            doc = yaml.safe_load(chunk)
        except yaml.YAMLError as err:
            raise ValueError(f"failed to decode rendered template: {err}") from err
        if not isinstance(doc, dict):
            raise ValueError("failed to decode rendered template: not a mapping")
        for field in ("apiVersion", "kind"):
            if not doc.get(field):
                raise ValueError(
                    f"failed to decode rendered template: Object '{field}' is missing"
                )
        documents.append(doc)
    return documents


def read_documents(filename: str) -> list[dict[str, Any]]:
    """Read a file and decode every resource document in it."""
    with open(filename, encoding="utf-8") as f:
        return split_documents(f.read())


def marshal_output(out: TextIO, obj: Mapping[str, Any]) -> None:
    """Write obj to out as YAML with sorted keys."""
    try:
        data = yaml.dump(
            obj,
            Dumper=_Dumper,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
            width=sys.maxsize,
        )
    except yaml.YAMLError as err:
        raise ValueError(f"failed to marshal data: {err}") from err
    out.write(data)


def output_resources(out: TextIO, resources: Iterable[Mapping[str, Any]]) -> None:
    """Write each resource to out, each preceded by a document separator."""
    for resource in resources:
        out.write("---\n")
        marshal_output(out, resource)