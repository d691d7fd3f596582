from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError, ValidationError as JsonSchemaValidationError, best_match

from bambai_platform.errors import (
    DuplicateToolError,
    SchemaValidationError,
    ToolRegistryError,
    UnknownToolError,
)

from .types import AutoExecute, Capability, Executor, RequiresConfirmation, ToolMode, ToolSpec


def _import_handler(handler: str) -> Executor:
    """
    handler format: "module.path:callable_name"
    example: "bambai_tools.school.tool:get_students"
    """
    if ":" not in handler:
        raise ToolRegistryError(f"Invalid handler '{handler}'. Expected 'module:callable'.")
    module_path, fn_name = handler.split(":", 1)
    mod = importlib.import_module(module_path)
    fn = getattr(mod, fn_name, None)
    if fn is None:
        raise ToolRegistryError(f"Handler '{handler}' not found.")
    return fn


def _load_json(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _capability(mode: ToolMode, fn: Executor) -> Capability:
    if mode == "auto_execute":
        return AutoExecute(fn)
    if mode == "requires_confirmation":
        return RequiresConfirmation(fn)
    raise ToolRegistryError(f"Unknown tool mode '{mode}'", {"mode": mode})


def _error_field(ve: JsonSchemaValidationError) -> str:
    path = [str(p) for p in ve.absolute_path]
    if ve.validator == "required" and isinstance(ve.instance, dict):
        missing = [p for p in ve.validator_value if p not in ve.instance]
        if missing:
            path.append(missing[0])
    return ".".join(path)


class ToolRegistry:
    """
    Holds every tool the model may call, keyed by unique name.

    Tools come from `register()` or from scanning
    `<tools_root>/*/manifest.json` with `discover()`.
    """

    def __init__(self, tools_root: Optional[Path] = None):
        self.tools_root = tools_root
        self._tools: Dict[str, ToolSpec] = {}
        self._validators: Dict[str, Draft202012Validator] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise DuplicateToolError(spec.name)
        try:
            Draft202012Validator.check_schema(spec.input_schema)
        except SchemaError as se:
            raise ToolRegistryError(
                f"Invalid input schema for '{spec.name}'",
                {"tool_name": spec.name, "error": se.message},
            ) from se
        self._tools[spec.name] = spec
        self._validators[spec.name] = Draft202012Validator(spec.input_schema)

    def discover(self) -> None:
        if self.tools_root is None or not self.tools_root.exists():
            raise ToolRegistryError(f"Tools root does not exist: {self.tools_root}")

        for manifest_path in sorted(self.tools_root.glob("*/manifest.json")):
            self._register_from_manifest(manifest_path)

    def _register_from_manifest(self, manifest_path: Path) -> None:
        tool_dir = manifest_path.parent
        manifest = _load_json(manifest_path)

        pkg = manifest.get("package")
        tools = manifest.get("tools", [])
        if not pkg or not isinstance(tools, list) or not tools:
            raise ToolRegistryError(f"Invalid manifest format: {manifest_path}")

        for t in tools:
            try:
                name = t["name"]
                mode: ToolMode = t["mode"]
                handler = t["handler"]
                in_rel = t["schemas"]["input"]
            except KeyError as e:
                raise ToolRegistryError(
                    f"Manifest entry missing {e} in {manifest_path}",
                    {"manifest": str(manifest_path)},
                ) from e

            # schemas are relative to tool_dir
            input_schema_path = (tool_dir / in_rel).resolve()
            if not input_schema_path.exists():
                raise ToolRegistryError(f"Missing input schema for {name}: {input_schema_path}")

            self.register(
                ToolSpec(
                    name=name,
                    description=t.get("description", "").strip(),
                    input_schema=_load_json(input_schema_path),
                    capability=_capability(mode, _import_handler(handler)),
                    handler=handler,
                )
            )

    def get(self, name: str) -> ToolSpec:
        if name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name]

    def list(self) -> Dict[str, ToolSpec]:
        return dict(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def validate(self, name: str, raw_arguments: Any) -> Dict[str, Any]:
        """
        Check raw model arguments against the tool's schema and return a
        validated copy. Properties the schema does not declare are dropped.
        """
        spec = self.get(name)
        error = best_match(self._validators[name].iter_errors(raw_arguments))
        if error is not None:
            raise SchemaValidationError(_error_field(error), error.message, tool_name=name)

        declared = spec.input_schema.get("properties")
        if declared is None:
            return dict(raw_arguments)
        return {k: v for k, v in raw_arguments.items() if k in declared}

    def confirmation_executors(self) -> Dict[str, Executor]:
        return {
            name: spec.capability.fn
            for name, spec in self._tools.items()
            if isinstance(spec.capability, RequiresConfirmation)
        }

    def tool_definitions(self) -> List[Dict[str, Any]]:
        return [spec.definition() for spec in self._tools.values()]


def check_executor_table(registry: ToolRegistry, executions: Mapping[str, Executor]) -> List[str]:
    """
    Return a problem line for every tool that is orphaned (confirmation
    required, no executor) or doubly gated (auto-executing, but also in the
    confirmation table). An empty list means the wiring is consistent.
    """
    problems: List[str] = []
    for name, spec in registry.list().items():
        if spec.requires_confirmation and name not in executions:
            problems.append(f"{name}: requires confirmation but has no executor")
        if not spec.requires_confirmation and name in executions:
            problems.append(f"{name}: auto-executes but also has a confirmation executor")
    for name in executions:
        if name not in registry:
            problems.append(f"{name}: executor has no registered tool")
    return problems
