# jsonui_testrunner/loader.py
"""
@file loader.py
@brief Loads screen/flow test documents from files, strings, streams and package resources.
"""

from __future__ import annotations

import json
import os
import re
from importlib import resources
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Union

import yaml
from jsonschema import Draft202012Validator

from .exceptions import MalformedDocument, ReferenceNotFound
from .models import (FLOW, SCREEN, FlowTest, LoadedFlow, LoadedScreen,
                     LoadedTest, ResolutionContext, ScreenTest)

TEST_FILE_SUFFIX = ".test.json"
SCHEMA_DIR = os.path.join(os.path.dirname(__file__), "schemas")

_TYPE_PATTERN = re.compile(r"""["']type["']\s*:\s*["'](\w+)["']""")
_VALIDATORS: Dict[str, Draft202012Validator] = {}


def _validator(kind: str) -> Draft202012Validator:
    if kind not in _VALIDATORS:
        path = os.path.join(SCHEMA_DIR, f"{kind}.schema.json")
        with open(path, "r", encoding="utf-8") as f:
            _VALIDATORS[kind] = Draft202012Validator(json.load(f))
    return _VALIDATORS[kind]


def scan_type(content: str) -> Optional[str]:
    """Find the document type discriminator without a full parse."""
    m = _TYPE_PATTERN.search(content)
    return m.group(1) if m else None


def _decode(content: str, name: str) -> Dict[str, Any]:
    """Strict JSON first; YAML as the lenient fallback (comments, single quotes, bare keys)."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as json_error:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError:
            raise MalformedDocument(f"Invalid JSON: {json_error}", source=name) from json_error
    if not isinstance(data, dict):
        raise MalformedDocument("Test document must be an object at root", source=name)
    return data


def validate_document(data: Dict[str, Any], kind: str, name: str = "inline") -> None:
    """Validate decoded document against the schema for its kind."""
    errors = sorted(_validator(kind).iter_errors(data), key=lambda e: list(e.path))
    if errors:
        problems = [f"{list(e.path)}: {e.message}" for e in errors]
        raise MalformedDocument(f"{kind} test schema validation failed", source=name, problems=problems)


class TestLoader:
    """
    Parses test documents into LoadedScreen / LoadedFlow values.

    The loader keeps no per-document state: the resolution context of every
    loaded document travels with the returned value.
    """
    __test__ = False

    def parse(self, content: str, name: str = "inline", base_dir: Optional[str] = None) -> LoadedTest:
        if scan_type(content) is None:
            raise MalformedDocument("Test file must have a 'type' field", source=name)
        data = _decode(content, name)

        # The scan may match a nested "type" key first; the decoded root decides.
        kind = data.get("type")
        if kind is None:
            raise MalformedDocument("Test file must have a 'type' field", source=name)
        if kind not in (SCREEN, FLOW):
            raise MalformedDocument(f"Unknown test type: {kind}", source=name)
        validate_document(data, kind, name)

        context = ResolutionContext().with_base_dir(base_dir)
        try:
            if kind == SCREEN:
                return LoadedScreen(test=ScreenTest.from_dict(data), path=name, context=context)
            return LoadedFlow(test=FlowTest.from_dict(data), path=name, context=context)
        except MalformedDocument as e:
            if e.source is None:
                e.source = name
            raise

    def load(self, path: str) -> LoadedTest:
        """Load a test from a file path; references resolve from its directory."""
        path = os.path.abspath(path)
        if not os.path.isfile(path):
            raise ReferenceNotFound(path)
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
        return self.parse(content, name=path, base_dir=os.path.dirname(path))

    def load_from_string(self, content: str, name: str = "inline", base_dir: Optional[str] = None) -> LoadedTest:
        return self.parse(content, name=name, base_dir=base_dir)

    def load_from_stream(
        self,
        stream: IO[Any],
        name: str,
        base_dir: Optional[str] = None,
    ) -> LoadedTest:
        raw: Union[str, bytes] = stream.read()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return self.parse(raw, name=name, base_dir=base_dir)

    def load_resource(self, package: str, resource: str) -> LoadedTest:
        """Load a test bundled as package data. No base directory is set."""
        content = resources.files(package).joinpath(resource).read_text(encoding="utf-8")
        return self.parse(content, name=f"{package}:{resource}")

    def load_all_resources(self, package: str, directory: str) -> List[LoadedTest]:
        """
        Load every *.test.json bundled in one package data directory, sorted by name.

        Subdirectories are not searched.

        @throws ReferenceNotFound if the directory is not part of the package
        """
        folder = resources.files(package).joinpath(directory)
        if not folder.is_dir():
            raise ReferenceNotFound(f"{package}:{directory}")
        names = sorted(entry.name for entry in folder.iterdir()
                       if entry.is_file() and entry.name.endswith(TEST_FILE_SUFFIX))
        return [self.load_resource(package, f"{directory}/{name}") for name in names]

    @staticmethod
    def discover(directory: str) -> List[str]:
        """All *.test.json files under directory, recursively, sorted."""
        base = Path(directory)
        if not base.is_dir():
            raise ReferenceNotFound(directory)
        return sorted(str(p.resolve()) for p in base.rglob(f"*{TEST_FILE_SUFFIX}") if p.is_file())

    def load_all(self, directory: str) -> List[LoadedTest]:
        return [self.load(path) for path in self.discover(directory)]
