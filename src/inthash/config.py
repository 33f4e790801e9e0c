"""Typed configuration loader for the inthash tables and CLI."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.tables import (
    DEFAULT_CAPACITY,
    DUPLICATE_POLICIES,
    GROWTH_FACTOR,
    LOAD_FACTOR_THRESHOLD,
    ChainedTable,
    GrowthPolicy,
    ProbingTable,
)

BACKENDS = ("chained", "probing")


@dataclass
class TablePolicy:
    chained_capacity: int = DEFAULT_CAPACITY
    probing_capacity: int = DEFAULT_CAPACITY
    load_factor_threshold: float = LOAD_FACTOR_THRESHOLD
    growth_factor: int = GROWTH_FACTOR
    duplicate_policy: str = "chain"

    def validate(self) -> None:
        for name in ("chained_capacity", "probing_capacity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise BadInputError(f"tables.{name} must be a positive integer")
        threshold = self.load_factor_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise BadInputError("tables.load_factor_threshold must be a number")
        if not 0.0 < threshold <= 1.0:
            raise BadInputError("tables.load_factor_threshold must be in (0, 1]")
        if isinstance(self.growth_factor, bool) or not isinstance(self.growth_factor, int):
            raise BadInputError("tables.growth_factor must be an integer")
        if self.growth_factor < 2:
            raise BadInputError("tables.growth_factor must be >= 2")
        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise BadInputError(
                "tables.duplicate_policy must be one of " + ", ".join(DUPLICATE_POLICIES)
            )

    def growth_policy(self) -> GrowthPolicy:
        return GrowthPolicy(
            load_factor_threshold=self.load_factor_threshold,
            growth_factor=self.growth_factor,
        )


@dataclass
class AppConfig:
    tables: TablePolicy = field(default_factory=TablePolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        tables_data = data.get("tables", {})
        if not isinstance(tables_data, dict):
            raise BadInputError("[tables] section must be a table")
        try:
            tables = TablePolicy(**tables_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [tables]: {exc}") from exc
        return cls(tables=tables)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "INTHASH_CHAINED_CAPACITY": ("chained_capacity", int),
            "INTHASH_PROBING_CAPACITY": ("probing_capacity", int),
            "INTHASH_LOAD_FACTOR": ("load_factor_threshold", float),
            "INTHASH_GROWTH_FACTOR": ("growth_factor", int),
            "INTHASH_DUPLICATE_POLICY": ("duplicate_policy", lambda raw: raw.strip().lower()),
        }
        for key, (attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.tables, attr, value)

    def validate(self) -> None:
        self.tables.validate()

    def build_table(self, backend: str, capacity: int | None = None) -> ChainedTable | ProbingTable:
        if backend == "chained":
            return ChainedTable(
                capacity or self.tables.chained_capacity,
                duplicate_policy=self.tables.duplicate_policy,
            )
        if backend == "probing":
            return ProbingTable(
                capacity or self.tables.probing_capacity,
                policy=self.tables.growth_policy(),
                duplicate_policy=self.tables.duplicate_policy,
            )
        raise BadInputError(f"Unknown backend {backend!r}", hint="Use 'chained' or 'probing'.")


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
