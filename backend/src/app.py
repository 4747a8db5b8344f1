# GitOps 데모 백엔드 API
# git 커밋 정보와 Docker 실행 여부를 알려주는 진단용 Flask 서버
import os
import atexit
import logging
from urllib.parse import quote
from flask import Flask, request, jsonify, current_app
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from access_log import AccessLog, utc_timestamp
from diagnostics import get_git_info, get_docker_info

logger = logging.getLogger(__name__)

# 경로 설정 - backend/src/app.py 기준
BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)  # git 정보는 backend/ 한 단계 위에서 조회

# 환경변수 설정
DEFAULT_PORT = 5000
LOG_DIR = os.getenv('LOG_DIR', os.path.join(BACKEND_DIR, 'logs'))
DEBUG_MODE = os.getenv('FLASK_DEBUG', 'false').lower() == 'true'

ROOT_MESSAGE = 'Backend server is running correctly'
ENDPOINTS = {
    'demo': '/api/demo'
}

# access.log 경로 기록 시 그대로 두는 문자 (RFC 3986)
PATH_SAFE_CHARS = "/:@!$&'()*+,;="
QUERY_SAFE_CHARS = PATH_SAFE_CHARS + "?%"


def get_port(environ=None):
    """PORT 환경변수 (없거나 비어 있으면 5000)"""
    if environ is None:
        environ = os.environ
    return int(environ.get('PORT') or DEFAULT_PORT)


def status_code_for(error):
    """예외에 지정된 HTTP 상태 코드 (없으면 500)"""
    if isinstance(error, HTTPException) and error.code:
        return error.code
    status = getattr(error, 'status', None)
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return 500


def error_message_for(error):
    """클라이언트에 돌려줄 에러 메시지 (스택은 포함하지 않음)"""
    if isinstance(error, HTTPException):
        return error.description or error.name
    return str(error) or 'Internal Server Error'


def create_app(access_log=None, repo_dir=None):
    """Flask 앱 생성

    access_log를 넘기지 않으면 LOG_DIR에 새로 열고 프로세스 종료 시 닫는다.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    CORS(app)

    if access_log is None:
        access_log = AccessLog(LOG_DIR).open()
        atexit.register(access_log.close)

    app.config['REPO_DIR'] = repo_dir or PROJECT_ROOT
    app.extensions['access_log'] = access_log

    @app.before_request
    def log_request():
        """모든 요청을 핸들러 실행 전에 access.log에 기록"""
        # 디코딩된 경로를 다시 인코딩 - %0A 등으로 로그 줄이 나뉘지 않도록
        path = quote(request.path, safe=PATH_SAFE_CHARS)
        if request.query_string:
            path = f"{path}?{quote(request.query_string, safe=QUERY_SAFE_CHARS)}"
        access_log.log_request(request.method, path, request.remote_addr)

    # 메인 - 사용 가능한 엔드포인트 안내
    @app.route('/')
    def home():
        return jsonify({
            'message': ROOT_MESSAGE,
            'endpoints': ENDPOINTS
        })

    # 데모 API - git / docker 진단 정보
    @app.route('/api/demo')
    def demo():
        return jsonify({
            'status': 'success',
            'data': {
                'git': get_git_info(current_app.config['REPO_DIR']),
                'docker': get_docker_info()
            },
            'timestamp': utc_timestamp()
        })

    @app.errorhandler(404)
    @app.errorhandler(405)
    def route_not_matched(error):
        """라우팅 실패(404/405)만 처리 - 핸들러 안의 abort()는 일반 에러로 기록"""
        if request.url_rule is not None:
            return handle_error(error)
        return jsonify({
            'status': 'error',
            'message': error.name
        }), error.code

    @app.errorhandler(Exception)
    def handle_error(error):
        """처리되지 않은 예외 - 로그 파일에 스택 기록 후 JSON 에러 응답"""
        try:
            access_log.log_error(error)
        except (OSError, RuntimeError):
            logger.exception("access.log 에러 기록 실패")

        logger.error(f"Server Error: {error}", exc_info=error)

        return jsonify({
            'status': 'error',
            'message': error_message_for(error)
        }), status_code_for(error)

    return app


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    port = get_port()

    with AccessLog(LOG_DIR) as access_log:
        app = create_app(access_log)

        logger.info("=================================")
        logger.info(f"Server running on port {port}")
        logger.info(f"Logs: {access_log.path}")
        logger.info("=================================")

        app.run(host='0.0.0.0', port=port, debug=DEBUG_MODE)
