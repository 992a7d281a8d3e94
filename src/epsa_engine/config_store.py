"""ModelConfigStore — loads the calculator configuration from ``v1/model/``.

This is the configuration provider used at runtime.  The store is loaded
once at startup and then serves the active configuration, a bounded
history of published versions for rollback, alternative model templates
and A/B testing variants.

Usage::

    store = ModelConfigStore()      # defaults to v1/model/ relative to repo root
    store.load()                    # parse default.yaml and the catalogue files

    config = store.current
    store.publish(edited_config)    # validated before it becomes active
    store.rollback("1.1.0")

Every configuration is validated when it is parsed, so a malformed table
or non-increasing cutoff is rejected here and never reaches a scorer.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import OrderedDict, deque
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from epsa_engine.constants import CONFIG_HISTORY_LIMIT
from epsa_engine.interfaces import ConfigProvider
from epsa_engine.models.catalog import (
    ConfigVersion,
    ModelTemplate,
    VariantDef,
    WeightGuidelines,
)
from epsa_engine.models.config import ModelConfig

logger = logging.getLogger(__name__)

CONTROL_VARIANT = "control"


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_model_config(path: Path | str) -> ModelConfig:
    """Parse and validate a single configuration file."""
    return ModelConfig.model_validate(load_yaml(path))


# ---------------------------------------------------------------------------
# ModelConfigStore
# ---------------------------------------------------------------------------

class ModelConfigStore(ConfigProvider):
    """Loads ``v1/model/*.yaml`` and manages the published configuration.

    Attributes populated after :meth:`load`:

        default     — ModelConfig from default.yaml
        templates   — dict[key, ModelTemplate] from alternatives.yaml
        variants    — list[VariantDef] from variants.yaml
        guidelines  — WeightGuidelines from guidelines.yaml

    Only ``default.yaml`` is required; the catalogue files are optional.
    """

    def __init__(
        self,
        model_dir: str | Path | None = None,
        *,
        history_limit: int = CONFIG_HISTORY_LIMIT,
    ) -> None:
        if model_dir is None:
            model_dir = find_repo_root() / "v1" / "model"
        self._base = Path(model_dir)

        # Populated by load()
        self.default: ModelConfig | None = None
        self.templates: dict[str, ModelTemplate] = {}
        self.variants: list[VariantDef] = []
        self.guidelines = WeightGuidelines()

        self._current: ModelConfig | None = None
        self._history: deque[ConfigVersion] = deque(maxlen=history_limit)
        # Configs derived from templates/variants, keyed by their version
        # string; the oldest is evicted once history_limit are held
        self._derived: OrderedDict[str, ModelConfig] = OrderedDict()
        self._derived_limit = history_limit
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse the default configuration and the catalogue files.

        Raises ``FileNotFoundError`` if ``default.yaml`` is missing and
        ``pydantic.ValidationError`` if any file is malformed.
        """
        self.default = load_model_config(self._base / "default.yaml")
        self._load_catalogue()
        self._activate(self.default, source="default")
        logger.info(
            "ModelConfigStore loaded: version %s, %d variables, %d templates, %d variants",
            self.default.version,
            len(self.default.part1.variables),
            len(self.templates),
            len(self.variants),
        )

    def _load_catalogue(self) -> None:
        templates_path = self._base / "alternatives.yaml"
        if templates_path.exists():
            for key, raw in (load_yaml(templates_path) or {}).items():
                self.templates[key] = ModelTemplate(**raw)

        variants_path = self._base / "variants.yaml"
        if variants_path.exists():
            self.variants = [VariantDef(**raw) for raw in load_yaml(variants_path) or []]

        guidelines_path = self._base / "guidelines.yaml"
        if guidelines_path.exists():
            self.guidelines = WeightGuidelines(**(load_yaml(guidelines_path) or {}))

    # ------------------------------------------------------------------
    # Active configuration
    # ------------------------------------------------------------------

    @property
    def current(self) -> ModelConfig:
        """The active configuration.  Take one reference per request."""
        config = self._current
        if config is None:
            raise RuntimeError("ModelConfigStore is not loaded; call load() first")
        return config

    def _activate(
        self, config: ModelConfig, *, source: str, check_conflict: bool = False
    ) -> ModelConfig:
        entry = ConfigVersion(
            version=config.version,
            published_at=datetime.now(timezone.utc),
            source=source,
            config=config,
        )
        with self._lock:
            if check_conflict:
                self._check_version_conflict(config)
            self._history.append(entry)
            self._current = config
        return config

    def _check_version_conflict(self, config: ModelConfig) -> None:
        # Caller holds self._lock.  One version string, one set of coefficients.
        known = [entry.config for entry in self._history if entry.version == config.version]
        if config.version in self._derived:
            known.append(self._derived[config.version])
        if self.default is not None and self.default.version == config.version:
            known.append(self.default)
        if any(existing != config for existing in known):
            raise ValueError(
                f"Model version '{config.version}' already published with different content"
            )

    def publish(self, config: ModelConfig | Mapping[str, Any]) -> ModelConfig:
        """Validate ``config`` and make it the active configuration.

        Raises ``pydantic.ValidationError`` (a ``ValueError``) if the
        configuration fails its integrity checks, and ``ValueError`` if its
        version string is already known with different content.  The active
        configuration is left unchanged in both cases; re-publishing an
        identical configuration is allowed.
        """
        if not isinstance(config, ModelConfig):
            config = ModelConfig.model_validate(config)
        self._activate(config, source="publish", check_conflict=True)
        logger.info("Published model configuration %s", config.version)
        return config

    def rollback(self, version: str) -> ModelConfig:
        """Re-activate the most recent history entry published as ``version``."""
        config = self._history_lookup(version)
        if config is None:
            raise KeyError(f"Model version '{version}' not found in history")
        self._activate(config, source="rollback")
        logger.info("Rolled back to model configuration %s", version)
        return config

    def reset_to_default(self) -> ModelConfig:
        """Re-activate the bundled default configuration."""
        if self.default is None:
            raise RuntimeError("ModelConfigStore is not loaded; call load() first")
        self._activate(self.default, source="reset")
        logger.info("Reset model configuration to default %s", self.default.version)
        return self.default

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def history(self) -> list[ConfigVersion]:
        """Published versions, oldest first (bounded by ``history_limit``)."""
        with self._lock:
            return list(self._history)

    def get_version(self, version: str) -> ModelConfig:
        """Resolve a version string to its configuration.

        Checks the active config, the publish history, then configs derived
        from templates or variants.

        Raises:
            KeyError: if the version is unknown.
        """
        current = self.current
        if current.version == version:
            return current
        config = self._history_lookup(version)
        if config is None:
            with self._lock:
                config = self._derived.get(version)
        if config is None:
            raise KeyError(f"Model version '{version}' not found")
        return config

    def _history_lookup(self, version: str) -> ModelConfig | None:
        with self._lock:
            for entry in reversed(self._history):
                if entry.version == version:
                    return entry.config
        return None

    def _remember_derived(self, config: ModelConfig) -> None:
        with self._lock:
            self._derived[config.version] = config
            self._derived.move_to_end(config.version)
            while len(self._derived) > self._derived_limit:
                self._derived.popitem(last=False)

    # ------------------------------------------------------------------
    # Templates and A/B variants
    # ------------------------------------------------------------------

    def apply_template(self, key: str, base: ModelConfig | None = None) -> ModelConfig:
        """Return ``base`` with a template's intercept and weights applied.

        Variables the template does not list keep their weights.  The
        derived config is not published; pass it to :meth:`publish` to
        activate it.
        """
        template = self.templates[key]
        base = base or self.current
        raw = copy.deepcopy(base.model_dump())
        raw["version"] = f"{base.version}+{key}"
        raw["part1"]["intercept"] = template.intercept
        for var in raw["part1"]["variables"]:
            if var["id"] in template.weights:
                var["weight"] = template.weights[var["id"]]
        derived = ModelConfig.model_validate(raw)
        self._remember_derived(derived)
        return derived

    def assign_variant(self, user_id: str) -> str:
        """Deterministically assign a user to an A/B variant.

        The assignment is the sum of the user id's code points modulo the
        number of variants, so a user always lands in the same variant.
        """
        names = [v.name for v in self.variants] or [CONTROL_VARIANT]
        return names[sum(ord(ch) for ch in user_id) % len(names)]

    def variant_config(self, name: str, base: ModelConfig | None = None) -> ModelConfig:
        """Return the configuration for an A/B variant.

        The control variant (or any variant without threshold overrides)
        returns ``base`` unchanged.

        Raises:
            KeyError: if the variant name is unknown.
        """
        base = base or self.current
        variant = next((v for v in self.variants if v.name == name), None)
        if variant is None:
            if name == CONTROL_VARIANT:
                return base
            logger.warning("Unknown model variant requested: %s", name)
            raise KeyError(f"Model variant '{name}' not found")
        if variant.lower_threshold is None and variant.moderate_threshold is None:
            return base

        raw = copy.deepcopy(base.model_dump())
        raw["version"] = f"{base.version}-{variant.suffix or variant.name}"
        cutoffs = raw["part1"]["risk_cutoffs"]
        if variant.lower_threshold is not None:
            cutoffs["lower"]["threshold"] = variant.lower_threshold
        if variant.moderate_threshold is not None:
            cutoffs["moderate"]["threshold"] = variant.moderate_threshold
        derived = ModelConfig.model_validate(raw)
        self._remember_derived(derived)
        return derived
