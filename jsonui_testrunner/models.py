# jsonui_testrunner/models.py
"""
@file models.py
@brief Typed document model for screen and flow test files.

Documents are parsed once and are immutable afterwards: every model is a
frozen dataclass and every sequence is a tuple.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .exceptions import MalformedDocument

SCREEN = "screen"
FLOW = "flow"
ALL_PLATFORMS = "all"

# JSON key -> attribute name for the optional step parameters
STEP_PARAMS: Dict[str, str] = {
    "id": "id",
    "ids": "ids",
    "text": "text",
    "value": "value",
    "direction": "direction",
    "duration": "duration",
    "timeout": "timeout",
    "ms": "ms",
    "name": "name",
    "equals": "equals",
    "contains": "contains",
    "path": "path",
    "amount": "amount",
    "button": "button",
}

_INT_PARAMS = {"duration", "timeout", "ms", "amount"}


def _as_int(value: Any, where: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDocument(f"{where}: expected a number, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise MalformedDocument(f"{where}: expected an integer, got {value}")
    return int(value)


def _as_tuple(value: Any) -> Optional[Tuple[Any, ...]]:
    if value is None:
        return None
    return tuple(value)


# --- Platform target ---

@dataclass(frozen=True)
class SinglePlatform:
    """Platform field given as a bare string."""
    value: str

    def includes(self, platform: str) -> bool:
        return self.value == platform or self.value == ALL_PLATFORMS

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class MultiplePlatforms:
    """Platform field given as a string array."""
    values: Tuple[str, ...]

    def includes(self, platform: str) -> bool:
        return platform in self.values or ALL_PLATFORMS in self.values

    def to_json(self) -> List[str]:
        return list(self.values)


PlatformTarget = Union[SinglePlatform, MultiplePlatforms]


def parse_platform(raw: Any, where: str = "platform") -> Optional[PlatformTarget]:
    """
    Decode a platform field. The JSON shape picks the variant:
    a string becomes SinglePlatform, an array becomes MultiplePlatforms.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return SinglePlatform(raw)
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(v, str) for v in raw):
            raise MalformedDocument(f"{where}: platform array must contain only strings")
        return MultiplePlatforms(tuple(raw))
    raise MalformedDocument(f"{where}: expected string or array for platform, got {type(raw).__name__}")


def platform_allows(target: Optional[PlatformTarget], platform: str) -> bool:
    """A missing platform restriction allows every platform."""
    return target is None or target.includes(platform)


# --- Shared pieces ---

@dataclass(frozen=True)
class TestMetadata:
    __test__ = False

    name: str
    description: Optional[str] = None
    generated_at: Optional[str] = None
    generated_by: Optional[str] = None
    tags: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestMetadata:
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise MalformedDocument("metadata.name is required")
        return cls(
            name=name,
            description=data.get("description"),
            generated_at=data.get("generatedAt"),
            generated_by=data.get("generatedBy"),
            tags=tuple(data.get("tags") or ()),
        )


@dataclass(frozen=True)
class TestSource:
    __test__ = False

    layout: str
    spec: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TestSource:
        return cls(layout=data["layout"], spec=data.get("spec"))


@dataclass(frozen=True)
class InitialState:
    view_model: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional[InitialState]:
        if data is None:
            return None
        return cls(view_model=dict(data["viewModel"]) if data.get("viewModel") is not None else None)


# --- Steps ---

@dataclass(frozen=True)
class TestStep:
    """
    One action or one assertion. Exactly one of `action` / `assertion` is set;
    the JSON key for `assertion` is "assert".
    """
    __test__ = False

    action: Optional[str] = None
    assertion: Optional[str] = None
    id: Optional[str] = None
    ids: Optional[Tuple[str, ...]] = None
    text: Optional[str] = None
    value: Optional[str] = None
    direction: Optional[str] = None
    duration: Optional[int] = None
    timeout: Optional[int] = None
    ms: Optional[int] = None
    name: Optional[str] = None
    equals: Any = None
    contains: Optional[str] = None
    path: Optional[str] = None
    amount: Optional[int] = None
    button: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.action is None) == (self.assertion is None):
            raise MalformedDocument("step must have exactly one of 'action' or 'assert'")

    @property
    def is_action(self) -> bool:
        return self.action is not None

    @property
    def is_assertion(self) -> bool:
        return self.assertion is not None

    @property
    def kind(self) -> str:
        return self.action if self.action is not None else self.assertion

    def describe(self) -> str:
        if self.action is not None:
            target = self.id or (",".join(self.ids) if self.ids else "-")
            return f"action={self.action}, id={target}"
        return f"assert={self.assertion}, id={self.id or '-'}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str = "step") -> TestStep:
        if not isinstance(data, Mapping):
            raise MalformedDocument(f"{where}: step must be an object")
        kwargs: Dict[str, Any] = {
            "action": data.get("action"),
            "assertion": data.get("assert"),
        }
        for key, attr in STEP_PARAMS.items():
            if key not in data:
                continue
            value = data[key]
            if key in _INT_PARAMS:
                value = _as_int(value, f"{where}.{key}")
            elif key == "ids":
                value = _as_tuple(value)
            kwargs[attr] = value
        try:
            return cls(**kwargs)
        except MalformedDocument as e:
            raise MalformedDocument(f"{where}: {e}") from None


@dataclass(frozen=True)
class TestCase:
    __test__ = False

    name: str
    steps: Tuple[TestStep, ...]
    description: Optional[str] = None
    skip: bool = False
    platform: Optional[PlatformTarget] = None
    initial_state: Optional[InitialState] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], where: str = "case") -> TestCase:
        steps = tuple(
            TestStep.from_dict(s, f"{where}.steps[{i}]")
            for i, s in enumerate(data.get("steps") or [])
        )
        return cls(
            name=data["name"],
            steps=steps,
            description=data.get("description"),
            skip=bool(data.get("skip") or False),
            platform=parse_platform(data.get("platform"), f"{where}.platform"),
            initial_state=InitialState.from_dict(data.get("initialState")),
        )


def _parse_steps(raw: Optional[Sequence[Any]], where: str) -> Optional[Tuple[TestStep, ...]]:
    if raw is None:
        return None
    return tuple(TestStep.from_dict(s, f"{where}[{i}]") for i, s in enumerate(raw))


@dataclass(frozen=True)
class ScreenTest:
    """A single-screen document: setup, independent cases, teardown."""
    source: TestSource
    metadata: TestMetadata
    cases: Tuple[TestCase, ...]
    platform: Optional[PlatformTarget] = None
    initial_state: Optional[InitialState] = None
    setup: Optional[Tuple[TestStep, ...]] = None
    teardown: Optional[Tuple[TestStep, ...]] = None
    type: str = SCREEN

    def get_case(self, name: str) -> Optional[TestCase]:
        for case in self.cases:
            if case.name == name:
                return case
        return None

    @property
    def case_names(self) -> List[str]:
        return [c.name for c in self.cases]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScreenTest:
        cases = tuple(
            TestCase.from_dict(c, f"cases[{i}]") for i, c in enumerate(data.get("cases") or [])
        )
        seen: Dict[str, int] = {}
        for i, case in enumerate(cases):
            if case.name in seen:
                raise MalformedDocument(
                    f"cases[{i}]: duplicate case name '{case.name}' (first defined at cases[{seen[case.name]}])"
                )
            seen[case.name] = i
        return cls(
            source=TestSource.from_dict(data["source"]),
            metadata=TestMetadata.from_dict(data["metadata"]),
            cases=cases,
            platform=parse_platform(data.get("platform")),
            initial_state=InitialState.from_dict(data.get("initialState")),
            setup=_parse_steps(data.get("setup"), "setup"),
            teardown=_parse_steps(data.get("teardown"), "teardown"),
        )


# --- Flow documents ---

@dataclass(frozen=True)
class InlineFlowStep:
    """A flow step carrying one action or assertion directly."""
    screen: Optional[str]
    step: TestStep

    def to_test_step(self) -> TestStep:
        return self.step


@dataclass(frozen=True)
class BlockFlowStep:
    """A named group of inline steps executed as a unit."""
    screen: Optional[str]
    block: str
    steps: Tuple[InlineFlowStep, ...]


@dataclass(frozen=True)
class FileRefFlowStep:
    """
    Delegates to cases of another screen test. With neither `case` nor `cases`
    every case of the referenced document runs.
    """
    screen: Optional[str]
    file: str
    case: Optional[str] = None
    cases: Optional[Tuple[str, ...]] = None


FlowTestStep = Union[InlineFlowStep, BlockFlowStep, FileRefFlowStep]


def parse_flow_step(
    data: Mapping[str, Any],
    where: str = "step",
    inherited_screen: Optional[str] = None,
    allow_nested: bool = True,
) -> FlowTestStep:
    """Pick the flow step shape from the keys present; exactly one must apply."""
    if not isinstance(data, Mapping):
        raise MalformedDocument(f"{where}: step must be an object")

    screen = data.get("screen", inherited_screen)
    shapes = []
    if "action" in data or "assert" in data:
        shapes.append("inline")
    if "block" in data:
        shapes.append("block")
    if "file" in data:
        shapes.append("file")

    if len(shapes) != 1:
        found = ", ".join(shapes) if shapes else "none"
        raise MalformedDocument(
            f"{where}: flow step must be exactly one of inline (action/assert), "
            f"block or file reference (found: {found})"
        )

    shape = shapes[0]
    if shape == "inline":
        if not screen:
            raise MalformedDocument(f"{where}: inline flow step requires 'screen'")
        return InlineFlowStep(screen=screen, step=TestStep.from_dict(data, where))

    if shape == "block":
        if not allow_nested:
            raise MalformedDocument(f"{where}: blocks may only contain inline steps")
        if not screen:
            raise MalformedDocument(f"{where}: block flow step requires 'screen'")
        inner: List[InlineFlowStep] = []
        for i, raw in enumerate(data.get("steps") or []):
            step = parse_flow_step(raw, f"{where}.steps[{i}]", inherited_screen=screen, allow_nested=False)
            if not isinstance(step, InlineFlowStep):
                raise MalformedDocument(f"{where}.steps[{i}]: blocks may only contain inline steps")
            inner.append(step)
        return BlockFlowStep(screen=screen, block=str(data["block"]), steps=tuple(inner))

    if not allow_nested:
        raise MalformedDocument(f"{where}: blocks may only contain inline steps")
    cases = data.get("cases")
    return FileRefFlowStep(
        screen=screen,
        file=str(data["file"]),
        case=data.get("case"),
        cases=tuple(cases) if cases is not None else None,
    )


def _parse_flow_steps(raw: Optional[Sequence[Any]], where: str) -> Optional[Tuple[FlowTestStep, ...]]:
    if raw is None:
        return None
    return tuple(parse_flow_step(s, f"{where}[{i}]") for i, s in enumerate(raw))


@dataclass(frozen=True)
class FlowTestSource:
    layout: str
    spec: Optional[str] = None
    alias: Optional[str] = None


@dataclass(frozen=True)
class FlowInitialState:
    screen: Optional[str] = None
    view_models: Optional[Dict[str, Dict[str, Any]]] = None


@dataclass(frozen=True)
class Checkpoint:
    name: str
    after_step: int
    screenshot: bool = False


@dataclass(frozen=True)
class FlowTest:
    """A cross-screen step sequence executed as one atomic unit."""
    sources: Tuple[FlowTestSource, ...]
    metadata: TestMetadata
    steps: Tuple[FlowTestStep, ...]
    platform: Optional[PlatformTarget] = None
    initial_state: Optional[FlowInitialState] = None
    setup: Optional[Tuple[FlowTestStep, ...]] = None
    teardown: Optional[Tuple[FlowTestStep, ...]] = None
    checkpoints: Tuple[Checkpoint, ...] = ()
    type: str = FLOW

    def checkpoints_after(self, index: int) -> List[Checkpoint]:
        return [c for c in self.checkpoints if c.after_step == index]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlowTest:
        sources = tuple(
            FlowTestSource(layout=s["layout"], spec=s.get("spec"), alias=s.get("alias"))
            for s in data.get("sources") or []
        )
        init = data.get("initialState")
        initial_state = None
        if init is not None:
            initial_state = FlowInitialState(screen=init.get("screen"), view_models=init.get("viewModels"))
        checkpoints = tuple(
            Checkpoint(
                name=c["name"],
                after_step=_as_int(c["afterStep"], f"checkpoints[{i}].afterStep"),
                screenshot=bool(c.get("screenshot") or False),
            )
            for i, c in enumerate(data.get("checkpoints") or [])
        )
        return cls(
            sources=sources,
            metadata=TestMetadata.from_dict(data["metadata"]),
            steps=_parse_flow_steps(data.get("steps") or [], "steps"),
            platform=parse_platform(data.get("platform")),
            initial_state=initial_state,
            setup=_parse_flow_steps(data.get("setup"), "setup"),
            teardown=_parse_flow_steps(data.get("teardown"), "teardown"),
            checkpoints=checkpoints,
        )


# --- Loaded documents ---

@dataclass(frozen=True)
class ResolutionContext:
    """
    Where relative file references of a document are resolved from.
    Threaded explicitly into every resolution call.
    """
    base_dir: Optional[str] = None

    @classmethod
    def for_file(cls, path: str) -> ResolutionContext:
        return cls(base_dir=os.path.dirname(os.path.abspath(path)))

    def with_base_dir(self, base_dir: Optional[str]) -> ResolutionContext:
        return replace(self, base_dir=os.path.abspath(base_dir) if base_dir else None)


@dataclass(frozen=True)
class LoadedScreen:
    test: ScreenTest
    path: str
    context: ResolutionContext = field(default_factory=ResolutionContext)
    kind: str = SCREEN

    @property
    def metadata(self) -> TestMetadata:
        return self.test.metadata


@dataclass(frozen=True)
class LoadedFlow:
    test: FlowTest
    path: str
    context: ResolutionContext = field(default_factory=ResolutionContext)
    kind: str = FLOW

    @property
    def metadata(self) -> TestMetadata:
        return self.test.metadata


LoadedTest = Union[LoadedScreen, LoadedFlow]
