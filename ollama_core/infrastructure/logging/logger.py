import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ollama_core.config.settings import Settings, settings


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(cfg: Settings = settings) -> logging.Logger:
    logger = logging.getLogger("ollama_core")
    logger.setLevel(cfg.log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if not cfg.log_dir:
        # 库默认不输出，交给调用方配置
        logger.addHandler(logging.NullHandler())
        return logger
    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "ollama_core.log", encoding="utf-8")
    fh.setLevel(cfg.log_level)
    fh.setFormatter(JsonFormatter(redact_content=cfg.log_redact_content))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
