from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s lookup=%(lookupType)s comp=%(component)s msg=%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class LookupContextFilter(logging.Filter):
    """
    Назначение:
        Проставляет в LogRecord контекст команды: runId, тип lookup и компонент.
        Значения, переданные через extra, не перезаписываются.
    """

    def __init__(self, runId: str, lookupType: str | None = None, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.lookupType = lookupType or "-"
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "lookupType"):
            record.lookupType = self.lookupType
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        return True


class LoggedStream:
    """
    Назначение:
        Обёртка над stdout/stderr: пишет в исходный поток и построчно
        дублирует непустые строки в лог команды.
    """

    def __init__(self, primary: TextIO, logger: logging.Logger, level: int, component: str):
        self.primary = primary
        self.logger = logger
        self.level = level
        self.component = component
        self._pending = ""

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self._pending += s
        *lines, self._pending = self._pending.split("\n")
        for line in lines:
            self._emit(line)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self._emit(self._pending)
        self._pending = ""

    def _emit(self, line: str) -> None:
        if line.strip():
            self.logger.log(self.level, line.rstrip(), extra={"component": self.component})


def mapLogLevel(levelName: str) -> int:
    """Преобразует ERROR|WARN|WARNING|INFO|DEBUG в logging level."""
    value = (levelName or "").strip().upper()
    if value not in _LEVELS:
        raise ValueError(f"Unsupported log level: {levelName}")
    return _LEVELS[value]


def createCommandLogger(
    commandName: str,
    logDir: str,
    runId: str,
    logLevel: str,
    lookupType: str | None = None,
) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Создаёт файловый логгер одного запуска команды.
        Файл: <logDir>/<commandName>_<runId>.log, каждая строка несёт runId и тип lookup.

    Выходные данные:
        (logger, logFilePath)
    """
    level = mapLogLevel(logLevel)
    logPath = Path(logDir)
    logPath.mkdir(parents=True, exist_ok=True)
    logFilePath = str(logPath / f"{commandName}_{runId}.log")

    logger = logging.getLogger(f"decsProvider.{commandName}.{runId}")
    closeCommandLogger(logger)
    logger.propagate = False
    logger.setLevel(level)

    fileHandler = logging.FileHandler(logFilePath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    fileHandler.addFilter(LookupContextFilter(runId=runId, lookupType=lookupType))
    logger.addHandler(fileHandler)

    return logger, logFilePath


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@contextmanager
def captureStdStreams(logger: logging.Logger) -> Iterator[None]:
    """
    Назначение:
        На время команды дублирует stdout (INFO) и stderr (ERROR) в лог.
        Исходные потоки восстанавливаются всегда, в том числе при typer.Exit.
    """
    originalStdout, originalStderr = sys.stdout, sys.stderr
    sys.stdout = LoggedStream(originalStdout, logger, logging.INFO, "stdout")
    sys.stderr = LoggedStream(originalStderr, logger, logging.ERROR, "stderr")
    try:
        yield
    finally:
        sys.stdout.flush()
        sys.stderr.flush()
        sys.stdout, sys.stderr = originalStdout, originalStderr


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    logger.log(level, message, extra={"runId": runId, "component": component})
