"""Abstract interface for the configuration provider.

The scorers take a ``ModelConfig`` argument and do not care where it came
from: a bundled default, a local cache or a remote store.  Callers that
serve many requests depend on this ABC so the provider can be swapped.

Typical integration flow::

    provider: ConfigProvider = ModelConfigStore()
    provider.load()

    config = provider.current          # snapshot once per request
    stage1 = score_stage1(answers, config)
    if stage1 is not None:
        stage2 = score_stage2(stage1, supplementary, config)

A Stage 2 request that arrives separately should resolve its config with
``provider.get_version(stage1.model_version)`` so coefficients from two
published versions are never mixed in one scoring pass.
"""

from abc import ABC, abstractmethod

from epsa_engine.models.config import ModelConfig


class ConfigProvider(ABC):
    """Supplies validated, immutable model configurations."""

    @property
    @abstractmethod
    def current(self) -> ModelConfig:
        """The active configuration.

        Implementations must swap the active configuration atomically so a
        reader always sees one complete published version.
        """
        ...

    @abstractmethod
    def get_version(self, version: str) -> ModelConfig:
        """Return the configuration published under ``version``.

        Raises
        ------
        KeyError
            If no configuration with that version is known.
        """
        ...
