"""
Structured event lines (one JSON object per line on stdout).

Keys: ts, level, message, request_id, event, module (+ extra).
"""
from __future__ import annotations

import datetime
import json
from typing import Any, Dict, Optional


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "ts": _now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    print(json.dumps(payload, ensure_ascii=False), flush=True)
    return payload


def audit(event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> Dict[str, Any]:
    # capturable in uvicorn log redirection, same as http.* lines
    return emit("audit", event, message, request_id, module, **extra)
