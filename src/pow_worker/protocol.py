from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Solution:
    """A nonce whose digest met the template's target difficulty."""
    template_id: int
    nonce: int

    def to_obj(self) -> Dict[str, Any]:
        return {"obj": "core", "act": "eureka", "template": self.template_id, "nonce": self.nonce}


@dataclass(frozen=True)
class Done:
    """
    End of an assignment. share_count counts every nonce that met the pool
    difficulty, solutions included.
    """
    nonce_from: int
    share_count: int

    def to_obj(self) -> Dict[str, Any]:
        return {"obj": "core", "act": "done", "nonce_from": self.nonce_from, "count": self.share_count}


ReportMessage = Union[Solution, Done]


def to_wire(message: ReportMessage) -> bytes:
    """Compact JSON, no trailing newline; the connection close ends the message."""
    return json.dumps(message.to_obj(), separators=(",", ":")).encode("utf-8")


def parse_report(payload: bytes) -> ReportMessage:
    """
    Parse a report payload as the core manager would. Raises ValueError on
    unexpected structure.
    """
    obj = json.loads(payload.decode("utf-8"))
    if not isinstance(obj, dict):
        raise ValueError("report must be an object")
    if obj.get("obj") != "core":
        raise ValueError(f"unexpected obj field: {obj.get('obj')!r}")

    act = obj.get("act")
    if act == "eureka":
        template, nonce = obj.get("template"), obj.get("nonce")
        if not isinstance(template, int) or not isinstance(nonce, int):
            raise ValueError(f"bad eureka report: {obj!r}")
        return Solution(template_id=template, nonce=nonce)
    if act == "done":
        nonce_from, count = obj.get("nonce_from"), obj.get("count")
        if not isinstance(nonce_from, int) or not isinstance(count, int):
            raise ValueError(f"bad done report: {obj!r}")
        return Done(nonce_from=nonce_from, share_count=count)
    raise ValueError(f"unexpected act field: {act!r}")
