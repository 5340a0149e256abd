from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .blob import UINT32_MAX, MalformedInput, decode
from .difficulty import InvalidDifficulty, check_difficulty


def _u32(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInput(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= UINT32_MAX:
        raise MalformedInput(f"{name} out of u32 range: {value}")
    return value


@dataclass(frozen=True)
class WorkAssignment:
    template_id: int
    nonce_from: int
    nonce_to: int  # exclusive
    pool_difficulty: int
    target_difficulty: int
    blob: str  # hex hashing blob

    def validate(self) -> bytearray:
        """
        Check every invariant of the assignment and return the decoded blob.
        Raises MalformedInput or InvalidDifficulty; nothing is hashed or sent.
        """
        _u32("template_id", self.template_id)
        _u32("nonce_from", self.nonce_from)
        _u32("nonce_to", self.nonce_to)
        if self.nonce_to <= self.nonce_from:
            raise MalformedInput(f"empty nonce range [{self.nonce_from}, {self.nonce_to})")

        check_difficulty(self.pool_difficulty)
        check_difficulty(self.target_difficulty)
        if self.target_difficulty < self.pool_difficulty:
            raise InvalidDifficulty(
                f"target difficulty {self.target_difficulty} below pool difficulty {self.pool_difficulty}"
            )

        return decode(self.blob)

    @property
    def nonce_count(self) -> int:
        return self.nonce_to - self.nonce_from

    @staticmethod
    def from_params(params: Dict[str, Any]) -> "WorkAssignment":
        # work input: {template, nonce_from, nonce_to, pool_difficulty, target_difficulty, blob}
        if not isinstance(params, dict):
            raise MalformedInput("work input must be an object")
        missing = [k for k in ("template", "nonce_from", "nonce_to", "pool_difficulty", "blob") if k not in params]
        if missing:
            raise MalformedInput(f"work input missing fields: {', '.join(missing)}")
        pool = params["pool_difficulty"]
        return WorkAssignment(
            template_id=params["template"],
            nonce_from=params["nonce_from"],
            nonce_to=params["nonce_to"],
            pool_difficulty=pool,
            target_difficulty=params.get("target_difficulty", pool),
            blob=params["blob"],
        )
