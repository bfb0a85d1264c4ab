"""
Base Schema Models for the Paygrid SDK

Defines the base class every request, response and payment model inherits
from, giving the whole data model one serialization behavior.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON output

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Features:
        - Population by field name or alias (API payloads use camelCase in places)
        - Deterministic, whitespace-free JSON for logging and comparisons

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        MyModel(name="test", value=123).to_canonical_json()
        # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert the model to a sorted-key, compact JSON string.

        ``None`` fields are omitted so optional sections that were never set
        do not appear in the output.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible dict using wire (alias) field names."""
        return self.model_dump(mode="json", by_alias=True)
