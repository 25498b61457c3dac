# logger.py
import datetime
import json
import logging
import os

from pydantic import BaseModel


def setup_logging(level=logging.INFO):
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _json_default(o):
    if isinstance(o, BaseModel):
        return o.model_dump()
    if isinstance(o, (bytes, bytearray)):
        return o.decode("utf-8", errors="replace")
    return repr(o)


def event_log_path(log_dir: str) -> str:
    return os.path.join(log_dir, f"themesify-{datetime.date.today().isoformat()}.jsonl")


def log_event(entry: dict, log_dir: str = "logs"):
    """Append one tool call/outcome as a JSON line. Never log the token."""
    os.makedirs(log_dir, exist_ok=True)
    entry = {**entry, "ts": datetime.datetime.now().isoformat()}
    with open(event_log_path(log_dir), "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=_json_default, ensure_ascii=False) + "\n")
