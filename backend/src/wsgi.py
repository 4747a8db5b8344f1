"""WSGI entrypoint (gunicorn wsgi:application 등)"""
from app import create_app

app = create_app()

application = app

if __name__ == "__main__":
    # 로컬 개발용
    from app import get_port
    app.run(host="0.0.0.0", port=get_port())
