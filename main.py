import os
from billing import create_app

# --- WSGI entrypoint (gunicorn main:app) ---
app = create_app()


# ========================== Run ==========================
if __name__ == "__main__":
    try:
        app.run(host="0.0.0.0", port=int(os.getenv("PORT", 8080)), threaded=True)
    finally:
        sweeper = app.extensions.get("cleanup_sweeper")
        if sweeper:
            sweeper.stop()
