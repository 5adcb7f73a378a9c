"""Workload config loading.

A config goes through four layers before it becomes a ``WorkloadSpec``:

1. version normalization (a missing ``version`` means the current one);
2. structural checks against ``CONFIG_SCHEMA``;
3. the pydantic models and their cross-field validators;
4. runtime resolution of the pieces the scheduler builds from names, which
   currently means the bypass policy.

Every layer reports ``ValidationIssue`` objects located by a dotted config
path; ``ConfigError`` carries the issues of the first failing layer.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from frame_batcher.bypass import create_bypass_policy
from frame_batcher.model import WorkloadSpec

from .schema import CONFIG_SCHEMA


ROOT_PATH = "<root>"


@dataclass(slots=True)
class ValidationIssue:
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ConfigError(Exception):
    """Workload config could not be read or validated."""

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None) -> None:
        super().__init__(message)
        self.issues = issues if issues else [ValidationIssue(ROOT_PATH, message)]


def _dotted(parts) -> str:
    return ".".join(str(part) for part in parts) or ROOT_PATH


class ConfigLoader:
    """Turn JSON/YAML workload configs into validated ``WorkloadSpec`` objects."""

    SUPPORTED_VERSION = "0.1"
    MAX_REPORTED_ISSUES = 8

    def __init__(self) -> None:
        self._schema_validator = jsonschema.Draft202012Validator(CONFIG_SCHEMA)

    def load(self, path: str) -> WorkloadSpec:
        return self.load_data(self._read(path))

    def load_data(self, payload: dict[str, Any]) -> WorkloadSpec:
        payload = self._normalize_version(payload)
        self._raise_for("schema validation failed", self.schema_issues(payload))
        try:
            spec = WorkloadSpec.model_validate(payload)
        except ValidationError as exc:
            issues = [ValidationIssue(_dotted(err["loc"]), err["msg"]) for err in exc.errors()]
            raise ConfigError("model validation failed: " + self._summarize(issues), issues) from exc
        self._raise_for("runtime resolution failed", self.runtime_issues(spec))
        return spec

    def save(self, spec: WorkloadSpec, path: str) -> None:
        output_path = Path(path)
        payload = spec.model_dump(mode="json", exclude_none=True)
        if output_path.suffix.lower() in {".yaml", ".yml"}:
            text = yaml.safe_dump(payload, sort_keys=False)
        else:
            text = json.dumps(payload, indent=2, ensure_ascii=False)
        output_path.write_text(text, encoding="utf-8")

    def validate(self, source: WorkloadSpec | str) -> list[ValidationIssue]:
        """Return every issue found for a config file or an in-memory spec.

        Specs can be constructed or mutated without going through pydantic
        validation, so an in-memory spec is dumped and run through all layers
        again.
        """
        try:
            if isinstance(source, WorkloadSpec):
                self.load_data(source.model_dump(exclude_none=True))
            else:
                self.load(source)
        except ConfigError as exc:
            return list(exc.issues)
        return []

    def schema_issues(self, payload: dict[str, Any]) -> list[ValidationIssue]:
        errors = sorted(
            self._schema_validator.iter_errors(payload),
            key=lambda err: [str(part) for part in err.path],
        )
        return [ValidationIssue(_dotted(err.path), err.message) for err in errors]

    @staticmethod
    def runtime_issues(spec: WorkloadSpec) -> list[ValidationIssue]:
        bypass = spec.scheduler.bypass
        try:
            create_bypass_policy(bypass.name, bypass.params)
        except ValueError as exc:
            return [ValidationIssue("scheduler.bypass", str(exc))]
        return []

    @staticmethod
    def _read(path: str) -> dict[str, Any]:
        input_path = Path(path)
        if not input_path.is_file():
            raise ConfigError(f"config file not found: {path}")

        text = input_path.read_text(encoding="utf-8")
        try:
            if input_path.suffix.lower() in {".yaml", ".yml"}:
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"invalid config syntax: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("config root must be object")
        return data

    def _normalize_version(self, payload: dict[str, Any]) -> dict[str, Any]:
        version = str(payload.get("version", self.SUPPORTED_VERSION))
        if version != self.SUPPORTED_VERSION:
            raise ConfigError(
                f"unsupported config version '{version}'",
                [ValidationIssue("version", f"expected '{self.SUPPORTED_VERSION}', got '{version}'")],
            )
        return {**payload, "version": version}

    def _raise_for(self, headline: str, issues: list[ValidationIssue]) -> None:
        if issues:
            raise ConfigError(f"{headline}: {self._summarize(issues)}", issues)

    def _summarize(self, issues: list[ValidationIssue]) -> str:
        shown = " | ".join(str(issue) for issue in issues[: self.MAX_REPORTED_ISSUES])
        hidden = len(issues) - self.MAX_REPORTED_ISSUES
        return f"{shown} | ... {hidden} more" if hidden > 0 else shown
