# 요청/에러 접근 로그 (append-only 파일)
import os
import logging
import traceback
from datetime import datetime, timezone

ACCESS_LOG_NAME = 'access.log'


def utc_timestamp(now=None):
    """UTC ISO-8601 시각 (밀리초, Z 접미사) 예: 2024-05-01T09:30:00.123Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class _StrictFileHandler(logging.FileHandler):
    """쓰기 실패를 stderr 출력으로 삼키지 않고 호출자에게 그대로 전달"""

    def handleError(self, record):
        raise


class AccessLog:
    """요청마다 한 줄, 처리된 에러마다 한 건을 파일 끝에 추가하는 로그

    open() 시점에 디렉터리를 만들고 파일을 한 번만 열며, close()에서 flush 후 닫는다.
    """

    def __init__(self, log_dir: str, filename: str = ACCESS_LOG_NAME):
        self.log_dir = log_dir
        self.path = os.path.join(log_dir, filename)
        self._handler = None
        # 전역 로거 트리에 등록되지 않는 전용 로거
        self._logger = logging.Logger('access_log', level=logging.INFO)
        self._logger.propagate = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_open(self):
        return self._handler is not None

    def open(self):
        if self._handler is not None:
            return self
        os.makedirs(self.log_dir, exist_ok=True)
        handler = _StrictFileHandler(self.path, mode='a', encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(message)s'))
        self._logger.addHandler(handler)
        self._handler = handler
        return self

    def close(self):
        if self._handler is None:
            return
        self._logger.removeHandler(self._handler)
        self._handler.flush()
        self._handler.close()
        self._handler = None

    def _write(self, line):
        if self._handler is None:
            raise RuntimeError(f"access log is closed: {self.path}")
        self._logger.info(line)

    def log_request(self, method: str, path: str, client_addr):
        self._write(f"[{utc_timestamp()}] {method} {path} - {client_addr}")

    def log_error(self, error):
        stack = ''.join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip()
        self._write(f"[{utc_timestamp()}] ERROR: {error}\n{stack}")
