# FastAPI application: create_app() in app.py, dependencies in deps.py,
# route modules under routers/.
