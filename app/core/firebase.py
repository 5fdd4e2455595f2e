"""Firebase Admin initialization shared by push delivery"""
import logging
import os
import time
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from app.core.config import settings

logger = logging.getLogger("app")

# Firebase initialization state
_firebase_app: Optional[firebase_admin.App] = None
_firebase_init_attempts = 0
_firebase_max_attempts = 3
_firebase_retry_delay = 2  # seconds

def initialize_firebase() -> Optional[firebase_admin.App]:
    """Initialize the default Firebase app, giving up after a few failed attempts.

    Unlike the old auth module this is not run at import time: the first push
    that needs the app pays for the initialization.
    """
    global _firebase_app, _firebase_init_attempts

    if _firebase_app is not None:
        return _firebase_app

    if _firebase_init_attempts >= _firebase_max_attempts:
        logger.error(f"Failed to initialize Firebase after {_firebase_max_attempts} attempts")
        return None

    _firebase_init_attempts += 1

    try:
        service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH

        if os.path.exists(service_account_path):
            cred = credentials.Certificate(service_account_path)
            _firebase_app = firebase_admin.initialize_app(cred)
            logger.info(f"Firebase initialized with service account from {service_account_path}")
        else:
            _firebase_app = firebase_admin.initialize_app()
            logger.warning("Firebase initialized without explicit credentials")

        return _firebase_app
    except ValueError:
        # The default app already exists (e.g. initialized by another component)
        _firebase_app = firebase_admin.get_app()
        return _firebase_app
    except Exception as e:
        logger.error(f"Failed to initialize Firebase (attempt {_firebase_init_attempts}): {e}")
        time.sleep(_firebase_retry_delay)
        return None
