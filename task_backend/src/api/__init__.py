"""
FastAPI Task Backend package.

The application is built by src.api.main.create_app(); a default instance
configured from the environment is available as src.api.main.app.
"""
