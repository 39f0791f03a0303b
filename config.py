# config.py

"""
Default application settings.

`create_app()` loads this object first, then any ``TRADELOG_*`` environment
variable (``TRADELOG_SQLALCHEMY_DATABASE_URI=sqlite:////data/trading.db``,
``TRADELOG_SECRET_KEY=...``, ``TRADELOG_LOG_LEVEL=DEBUG``), then the test
configuration passed to the factory.
"""


class Config:
    # Configure the SQLite database and a secret key for flash messages
    SQLALCHEMY_DATABASE_URI = 'sqlite:///trading.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = 'change-me'

    # Largest accepted upload, in bytes
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    LOG_LEVEL = 'INFO'

    # Refresh period of the /dash/ charts, in milliseconds
    DASH_REFRESH_MS = 5000

    # Mount the Dash charts under /dash/
    ENABLE_DASHBOARD = True
