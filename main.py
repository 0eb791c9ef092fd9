import os

from baoleme.main import create_app

# WSGI entry point (gunicorn main:app)
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=os.getenv("FLASK_DEBUG") == "1")
