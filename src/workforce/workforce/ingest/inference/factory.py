from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ...core.enums import ImportSource
from .base import InferencePolicy
from .csv_policy import CsvInferencePolicy
from .srp_policy import SrpInferencePolicy


def _default_policies() -> Dict[ImportSource, InferencePolicy]:
    return {
        ImportSource.SRP: SrpInferencePolicy(),
        ImportSource.CSV: CsvInferencePolicy(),
    }


@dataclass
class InferencePolicyFactory:
    """Factory Pattern: one inference policy per import source."""

    policies: Dict[ImportSource, InferencePolicy] = field(default_factory=_default_policies)

    def for_source(self, source: ImportSource) -> InferencePolicy:
        try:
            return self.policies[source]
        except KeyError:
            raise ValueError(f"No inference policy for source {source!r}") from None
