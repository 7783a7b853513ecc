import logging
import sys
from pathlib import Path

from subcatalog.config import Config


def setup_logging(config: Config):
    """
    Настройка логирования для приложения.

    - Консоль: INFO и выше
    - app.log: все логи (DEBUG)
    - errors.log: только ошибки
    """
    log_dir = Path(config.LOGS_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    # Формат логов
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    # Корневой логгер
    root_logger = logging.getLogger()
    root_logger.setLevel(config.LOG_LEVEL)

    # Закрываем и убираем старые хэндлеры (если приложение создаётся повторно)
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
        root_logger.removeHandler(handler)

    # ===== CONSOLE HANDLER =====
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # ===== FILE HANDLER (все логи) =====
    file_handler = logging.FileHandler(log_dir / "app.log", mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # ===== ERROR FILE HANDLER (только ошибки) =====
    error_handler = logging.FileHandler(log_dir / "errors.log", mode="a", encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(error_handler)

    # Отключаем слишком болтливые библиотеки
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root_logger
