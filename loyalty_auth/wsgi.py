# loyalty_auth/wsgi.py
# gunicorn loyalty_auth.wsgi:app
from loyalty_auth.config.settings import Settings
from loyalty_auth.main import create_app

settings = Settings()
app = create_app(settings)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=settings.debug)
