# 배포 진단 정보 수집
# git 리비전 조회 + 컨테이너(Docker) 실행 여부 감지
import os
import logging
import subprocess

logger = logging.getLogger(__name__)

DOCKERENV_PATH = '/.dockerenv'
CGROUP_PATH = '/proc/1/cgroup'
DOCKER_ENV_VARS = ('DOCKER_CONTAINER', 'IS_DOCKER')

DOCKER_NOT_DETECTED = 'Not running in Docker or info unavailable'
GIT_FALLBACK = 'Git info not available (not a git repo or git not installed)'

# 짧은 해시 - 작성자 (상대 시간): 커밋 제목
GIT_LOG_FORMAT = '%h - %an (%ar): %s'


def _check_dockerenv(path: str):
    """Docker가 컨테이너 루트에 만드는 .dockerenv 파일 확인"""
    if os.path.exists(path):
        return 'Running inside Docker container (.dockerenv found)'
    return None


def _check_cgroup(path: str):
    """PID 1의 cgroup 정보에 docker 문자열이 있는지 확인"""
    if not os.path.exists(path):
        return None
    try:
        with open(path, encoding='utf-8', errors='replace') as f:
            cgroup = f.read()
    except OSError as e:
        logger.debug(f"cgroup 파일 읽기 실패 ({path}): {e}")
        return None
    if 'docker' in cgroup:
        return 'Running inside Docker container (cgroup check)'
    return None


def _check_env(environ):
    if any(environ.get(name) for name in DOCKER_ENV_VARS):
        return 'Running inside Docker container (env var check)'
    return None


def detect_container(dockerenv_path=DOCKERENV_PATH, cgroup_path=CGROUP_PATH, environ=None):
    """컨테이너 감지 - 먼저 일치한 신호의 메시지, 없으면 None

    순서: .dockerenv > cgroup > 환경변수
    """
    if environ is None:
        environ = os.environ
    return (
        _check_dockerenv(dockerenv_path)
        or _check_cgroup(cgroup_path)
        or _check_env(environ)
    )


def get_docker_info(dockerenv_path=DOCKERENV_PATH, cgroup_path=CGROUP_PATH, environ=None):
    return detect_container(dockerenv_path, cgroup_path, environ) or DOCKER_NOT_DETECTED


def read_git_revision(repo_dir: str, git_binary: str = 'git', timeout=None):
    """repo_dir 기준 최신 커밋 요약 조회 (실패 시 None)"""
    try:
        result = subprocess.run(
            [git_binary, 'log', '-1', f'--format={GIT_LOG_FORMAT}'],
            cwd=repo_dir,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout
        )
    except (OSError, subprocess.SubprocessError) as e:
        # git 미설치 / git 저장소 아님 / 비정상 종료
        logger.debug(f"git 정보 조회 실패 ({repo_dir}): {e}")
        return None

    return result.stdout.strip() or None


def get_git_info(repo_dir: str, git_binary: str = 'git', timeout=None):
    return read_git_revision(repo_dir, git_binary, timeout) or GIT_FALLBACK
